"""
Services layer - Business logic goes here.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- AI analysis lives in ai_analysis/ and never touches storage
- Routes translate service results and errors into HTTP responses
"""
