"""
Scheduling Domain

Recurring bookings for a cleaning company: series creation, the derived
subscription view, pause/resume lifecycle and cleaner time off.

Structure:
- time_calculator.py      # Recurring date sequencing
- materializer.py         # Persists generated occurrences
- subscription_view.py    # Derived subscription status and rollups
- lifecycle_service.py    # Pause and resume
- series_service.py       # Create, list, modify and cancel series
- availability_service.py # Time off conflicts
- repository.py           # Database queries
- router.py               # FastAPI endpoints
"""
