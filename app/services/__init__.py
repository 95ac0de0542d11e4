"""
Services layer - report lifecycle business logic.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Routes talk to LifecycleEngine only; it composes the other services
- Every guard runs inside the store transaction that performs the write
- Notifications are fire-and-forget and never undo a committed transition
"""
