"""
Employment Applications Module

Handles the employment application workflow:
1. Submission of the multi-section intake form with document uploads
2. Normalization into a canonical record (lenient booleans, flexible dates)
3. Review status lifecycle (submitted -> under-review -> approved/rejected)
4. Secure projection of every record that leaves the service

API Endpoints:
- POST /applications - Submit new application (public, rate limited)
- GET /applications - List applications (status filter, pagination)
- GET /applications/search/email - Search by applicant email
- GET /applications/stats/all - Counts per status
- GET /applications/recent/list - Most recent submissions
- GET /applications/{application_id} - Application detail
- PATCH /applications/{application_id}/status - Change review status
- DELETE /applications/{application_id} - Delete application and documents

Operator notifications go to a Telegram chat as background tasks.
"""

from .admin_router import router as dashboard_router
from .router import router

__all__ = ["router", "dashboard_router"]
