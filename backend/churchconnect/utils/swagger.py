"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "ChurchConnect API",
            'defaultModelsExpandDepth': -1,
            'defaultModelExpandDepth': 1,
            'docExpansion': 'list',
            'filter': True,
            'supportedSubmitMethods': ['get', 'post', 'put', 'delete', 'patch'],
            'validatorUrl': None,
        }
    )
    return swaggerui_blueprint

def _json_body(schema_ref: str = None, properties: dict = None, required: list = None):
    schema = {"$ref": f"#/components/schemas/{schema_ref}"} if schema_ref else {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
    }
    return {"required": True, "content": {"application/json": {"schema": schema}}}

def _responses(description: str, *errors: str):
    responses = {"200": {"description": description}}
    for code in errors:
        responses[code] = {
            "description": "Error",
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}},
        }
    return responses

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    staff = [{"bearerAuth": []}]
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "ChurchConnect API",
            "description": "Multi-tenant church management: members, visitors, events, "
                           "check-in channels (manual, family, biometric, kiosk, external PIN) and reports.",
            "version": "1.0.0",
        },
        "servers": [
            {"url": "http://127.0.0.1:5000", "description": "Development server"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT",
                    "description": "Staff token, or kiosk token for /api/kiosk endpoints"
                }
            },
            "schemas": {
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean"},
                        "message": {"type": "string"},
                        "status_code": {"type": "integer"},
                        "isDuplicate": {"type": "boolean"},
                        "upgradeRequired": {"type": "boolean"},
                        "suspended": {"type": "boolean"}
                    }
                },
                "Member": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "title": {"type": "string", "nullable": True},
                        "firstName": {"type": "string"},
                        "surname": {"type": "string"},
                        "gender": {"type": "string", "enum": ["male", "female"]},
                        "ageGroup": {"type": "string", "enum": ["child", "adolescent", "adult"]},
                        "phone": {"type": "string", "nullable": True},
                        "email": {"type": "string", "nullable": True},
                        "isCurrentMember": {"type": "boolean"},
                        "parentId": {"type": "integer", "nullable": True}
                    }
                },
                "Event": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "name": {"type": "string"},
                        "eventType": {
                            "type": "string",
                            "enum": ["sunday_service", "bible_study", "prayer_meeting",
                                     "youth_service", "special_event", "other"]
                        },
                        "location": {"type": "string", "nullable": True},
                        "isActive": {"type": "boolean"},
                        "externalCheckinEnabled": {"type": "boolean"},
                        "externalCheckinUrl": {"type": "string", "nullable": True}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "memberId": {"type": "integer", "nullable": True},
                        "visitorId": {"type": "integer", "nullable": True},
                        "eventId": {"type": "integer", "nullable": True},
                        "attendanceDate": {"type": "string", "format": "date"},
                        "checkInTime": {"type": "string", "format": "date-time"},
                        "checkInMethod": {
                            "type": "string",
                            "enum": ["manual", "biometric", "family", "external", "kiosk", "visitor"]
                        },
                        "isGuest": {"type": "boolean"}
                    }
                },
                "KioskSession": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "isActive": {"type": "boolean"},
                        "timeRemaining": {"type": "integer", "description": "Seconds"},
                        "startedAt": {"type": "string", "format": "date-time"},
                        "expiresAt": {"type": "string", "format": "date-time"},
                        "availableEvents": {"type": "array", "items": {"type": "object"}}
                    }
                }
            }
        },
        "paths": {
            "/api/churches/register": {
                "post": {
                    "tags": ["Churches"],
                    "summary": "Register a church and its admin",
                    "requestBody": _json_body(properties={
                        "churchName": {"type": "string"},
                        "adminFirstName": {"type": "string"},
                        "adminLastName": {"type": "string"},
                        "adminEmail": {"type": "string", "format": "email"},
                        "password": {"type": "string", "minLength": 8},
                        "subdomain": {"type": "string"}
                    }, required=["churchName", "adminFirstName", "adminLastName", "adminEmail", "password"]),
                    "responses": {"201": {"description": "Church created"}, "400": {"description": "Invalid data"}}
                }
            },
            "/api/churches/login": {
                "post": {
                    "tags": ["Churches"],
                    "summary": "Staff login",
                    "requestBody": _json_body(properties={
                        "email": {"type": "string"},
                        "password": {"type": "string"}
                    }, required=["email", "password"]),
                    "responses": _responses("Token issued", "401", "403")
                }
            },
            "/api/churches/kiosk-settings": {
                "get": {
                    "tags": ["Kiosk"],
                    "summary": "Kiosk settings and active session",
                    "security": staff,
                    "responses": _responses("Kiosk settings")
                },
                "patch": {
                    "tags": ["Kiosk"],
                    "summary": "Update kiosk settings (admin)",
                    "security": staff,
                    "requestBody": _json_body(properties={
                        "kioskModeEnabled": {"type": "boolean"},
                        "kioskSessionTimeout": {"type": "integer", "enum": [15, 30, 60, 120, 240, 480]}
                    }),
                    "responses": _responses("Updated settings", "400", "403")
                }
            },
            "/api/churches/kiosk-session/start": {
                "post": {
                    "tags": ["Kiosk"],
                    "summary": "Start (or replace) the kiosk session",
                    "security": staff,
                    "responses": _responses("Session with staff and kiosk tokens", "400", "403")
                }
            },
            "/api/churches/kiosk-session/extend": {
                "post": {
                    "tags": ["Kiosk"],
                    "summary": "Extend the live kiosk session",
                    "security": staff,
                    "responses": _responses("Extended session", "404")
                }
            },
            "/api/churches/kiosk-session/end": {
                "post": {
                    "tags": ["Kiosk"],
                    "summary": "End the kiosk session",
                    "security": staff,
                    "responses": _responses("Session ended")
                }
            },
            "/api/kiosk/checkin": {
                "post": {
                    "tags": ["Kiosk"],
                    "summary": "Check in a member from the kiosk",
                    "security": staff,
                    "requestBody": _json_body(properties={
                        "memberId": {"type": "integer"},
                        "eventId": {"type": "integer"}
                    }, required=["memberId", "eventId"]),
                    "responses": {
                        "201": {"description": "Checked in"},
                        "401": {"description": "Kiosk session missing, ended or expired"},
                        "403": {"description": "Event outside the session scope"},
                        "409": {"description": "Already checked in"}
                    }
                }
            },
            "/api/members": {
                "get": {
                    "tags": ["Members"],
                    "summary": "List members",
                    "security": staff,
                    "parameters": [
                        {"name": "search", "in": "query", "schema": {"type": "string"}},
                        {"name": "gender", "in": "query", "schema": {"type": "string"}},
                        {"name": "ageGroup", "in": "query", "schema": {"type": "string"}},
                        {"name": "isCurrentMember", "in": "query", "schema": {"type": "boolean"}}
                    ],
                    "responses": _responses("Members")
                },
                "post": {
                    "tags": ["Members"],
                    "summary": "Create a member",
                    "security": staff,
                    "requestBody": _json_body("Member"),
                    "responses": {"201": {"description": "Member created"}, "400": {"description": "Invalid data"},
                                  "403": {"description": "Member limit reached"}}
                }
            },
            "/api/attendance": {
                "post": {
                    "tags": ["Attendance"],
                    "summary": "Manual check-in",
                    "security": staff,
                    "requestBody": _json_body(properties={
                        "memberId": {"type": "integer"},
                        "visitorId": {"type": "integer"},
                        "eventId": {"type": "integer"},
                        "attendanceDate": {"type": "string", "format": "date"}
                    }),
                    "responses": {"201": {"description": "Recorded"}, "409": {"description": "Duplicate"}}
                }
            },
            "/api/events/{eventId}/external-checkin/toggle": {
                "post": {
                    "tags": ["External Check-in"],
                    "summary": "Enable or disable external check-in for an event",
                    "security": staff,
                    "parameters": [{"name": "eventId", "in": "path", "required": True, "schema": {"type": "integer"}}],
                    "requestBody": _json_body(properties={"enabled": {"type": "boolean"}}, required=["enabled"]),
                    "responses": _responses("New URL and PIN", "400", "403", "404")
                }
            },
            "/api/external-checkin/event/{eventUrl}": {
                "get": {
                    "tags": ["External Check-in"],
                    "summary": "Public event details",
                    "parameters": [{"name": "eventUrl", "in": "path", "required": True, "schema": {"type": "string"}}],
                    "responses": _responses("Event details", "404")
                }
            },
            "/api/external-checkin/checkin/{eventUrl}": {
                "post": {
                    "tags": ["External Check-in"],
                    "summary": "Check in with the event PIN",
                    "parameters": [{"name": "eventUrl", "in": "path", "required": True, "schema": {"type": "string"}}],
                    "requestBody": _json_body(properties={
                        "pin": {"type": "string", "pattern": "^[0-9]{6}$"},
                        "memberId": {"type": "integer"}
                    }, required=["pin", "memberId"]),
                    "responses": _responses("Checked in", "400", "401", "404", "409", "429")
                }
            },
            "/api/reports/{reportType}": {
                "get": {
                    "tags": ["Reports"],
                    "summary": "Generate a named report",
                    "security": staff,
                    "parameters": [
                        {
                            "name": "reportType",
                            "in": "path",
                            "required": True,
                            "schema": {
                                "type": "string",
                                "enum": ["weekly-attendance", "member-attendance-log", "missed-services",
                                         "new-members", "inactive-members", "group-attendance-trend",
                                         "family-checkin-summary", "followup-action-tracker"]
                            }
                        }
                    ],
                    "responses": _responses("Report rows", "400", "403")
                }
            },
            "/api/export/attendance": {
                "get": {
                    "tags": ["Reports"],
                    "summary": "Attendance CSV export",
                    "security": staff,
                    "responses": {"200": {"description": "CSV file", "content": {"text/csv": {}}}}
                }
            }
        },
        "tags": [
            {"name": "Churches", "description": "Registration, login and settings"},
            {"name": "Kiosk", "description": "Kiosk session management and kiosk check-in"},
            {"name": "Members", "description": "Member registry"},
            {"name": "Attendance", "description": "Check-in channels"},
            {"name": "External Check-in", "description": "Public URL and PIN check-in"},
            {"name": "Reports", "description": "Analytics and exports"}
        ]
    }
