"""
Swagger/OpenAPI configuration for the Barber Booking API
"""

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api/docs",
}

SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Barber Booking API",
        "description": "REST API for booking barbers: accounts, barber profiles, bookings, reviews and Midtrans payments",
        "contact": {"email": "support@barberhub.id"},
        "version": "1.0.0",
    },
    "host": "",
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": 'JWT Authorization header using the Bearer scheme. Example: "Authorization: Bearer {token}"',
        }
    },
    "security": [{"Bearer": []}],
    "tags": [
        {"name": "Authentication", "description": "Registration, login and user accounts"},
        {"name": "Barbers", "description": "Barber profiles and images"},
        {"name": "Bookings", "description": "Booking lifecycle"},
        {"name": "Reviews", "description": "Barber reviews"},
        {"name": "Payments", "description": "Midtrans payments and proof uploads"},
        {"name": "Utility", "description": "Health check and uploaded files"},
    ],
    "definitions": {
        "Error": {
            "type": "object",
            "properties": {
                "status": {"type": "string", "example": "error"},
                "message": {"type": "string"},
                "details": {"type": "string"},
                "errors": {"type": "object"},
            },
        },
        "Success": {
            "type": "object",
            "properties": {
                "status": {"type": "string", "example": "success"},
                "message": {"type": "string"},
            },
        },
        "User": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "username": {"type": "string"},
                "email": {"type": "string"},
                "role": {"type": "string", "enum": ["user", "barber", "admin"]},
                "created_at": {"type": "string", "format": "date-time"},
                "updated_at": {"type": "string", "format": "date-time"},
            },
        },
        "Barber": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "phone_number": {"type": "string"},
                "latitude": {"type": "number", "format": "float"},
                "longitude": {"type": "number", "format": "float"},
                "services": {"type": "string"},
                "paket": {"type": "string"},
                "paket_description": {"type": "string"},
                "price": {"type": "number", "format": "float"},
                "profile_image": {"type": "string"},
                "bank_name": {"type": "string"},
                "account_number": {"type": "string"},
                "payment_method": {"type": "string", "enum": ["tf", "qris"]},
                "gallery_images": {"type": "array", "items": {"type": "string"}},
            },
        },
        "Booking": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "email": {"type": "string"},
                "barber_id": {"type": "integer"},
                "appointment_time": {"type": "string", "format": "date-time"},
                "location": {"type": "string", "enum": ["barbershop", "home"]},
                "address": {"type": "string"},
                "service": {"type": "string"},
                "price": {"type": "number", "format": "float"},
                "payment_method": {"type": "string", "enum": ["tf", "qris"]},
                "status": {
                    "type": "string",
                    "enum": ["pending", "confirmed", "completed", "cancelled"],
                },
            },
        },
        "Review": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "barber_id": {"type": "integer"},
                "user_id": {"type": "integer"},
                "username": {"type": "string"},
                "rating": {"type": "integer", "minimum": 1, "maximum": 5},
                "comment": {"type": "string"},
            },
        },
        "Payment": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "example": "PAYMENT_1_1700000000000"},
                "booking_id": {"type": "integer"},
                "order_id": {"type": "string", "example": "ORDER_1_1700000000000"},
                "amount": {"type": "number", "format": "float"},
                "payment_method": {"type": "string", "enum": ["tf", "qris"]},
                "status": {"type": "string", "example": "pending"},
                "status_kind": {"type": "string", "example": "pending"},
                "midtrans_token": {"type": "string"},
                "midtrans_url": {"type": "string"},
            },
        },
        "RegisterPayload": {
            "type": "object",
            "required": ["username", "email", "password"],
            "properties": {
                "username": {"type": "string", "example": "andi"},
                "email": {"type": "string", "example": "andi@example.com"},
                "password": {"type": "string", "example": "password123"},
            },
        },
        "BookingPayload": {
            "type": "object",
            "required": [
                "email",
                "barberId",
                "appointmentTime",
                "location",
                "service",
                "price",
                "payment_method",
            ],
            "properties": {
                "email": {"type": "string", "example": "a@b.com"},
                "barberId": {"type": "integer", "example": 1},
                "appointmentTime": {"type": "string", "example": "2024-01-01T10:00"},
                "location": {"type": "string", "enum": ["barbershop", "home"]},
                "address": {"type": "string", "description": "Required for home visits"},
                "service": {"type": "string", "maxLength": 255, "example": "Haircut"},
                "paket": {"type": "string"},
                "paket_description": {"type": "string"},
                "price": {"type": "number", "example": 50000},
                "bank_name": {"type": "string", "example": "BCA"},
                "account_number": {"type": "string", "example": "123"},
                "payment_method": {"type": "string", "enum": ["tf", "qris"]},
            },
        },
        "ReviewPayload": {
            "type": "object",
            "required": ["barberId", "rating", "comment"],
            "properties": {
                "barberId": {"type": "integer"},
                "rating": {"type": "integer", "minimum": 1, "maximum": 5},
                "comment": {"type": "string", "maxLength": 500},
                "username": {"type": "string"},
            },
        },
        "SnapPaymentPayload": {
            "type": "object",
            "required": ["bookingId", "paymentMethod"],
            "properties": {
                "bookingId": {"type": "integer"},
                "paymentMethod": {"type": "string", "enum": ["tf", "bank_transfer", "qris"]},
                "bankName": {"type": "string", "example": "BCA"},
                "accountNumber": {"type": "string"},
                "qrisCode": {"type": "string"},
                "phone": {"type": "string"},
            },
        },
        "DirectPaymentPayload": {
            "type": "object",
            "required": ["bookingId", "paymentMethod"],
            "properties": {
                "bookingId": {"type": "integer"},
                "paymentMethod": {"type": "string", "enum": ["tf", "qris"]},
                "bankName": {"type": "string"},
                "accountNumber": {"type": "string"},
                "qrisCode": {"type": "string"},
                "amount": {"type": "number"},
            },
        },
    },
}
