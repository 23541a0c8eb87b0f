"""
Services layer - Business logic goes here.
Keep services focused on specific domains (workflow, store, rewards, etc.)

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- The workflow engine is pure; persistence and side effects live around it
- Every mutation names its actor explicitly
"""
