"""v1 router package: all /api/v1/* endpoints live here.

Files:
  users.py       /users (profile, admin user management)
  reports.py     /reports CRUD, stats, duplicate, executive summary, audit log, PDF
  workflow.py    /reports/{id}/submit, /signature, /review, /approve, /reject
  elements.py    /reports/{id}/elements
  defects.py     /reports/{id}/defects
  photos.py      /reports/{id}/photos and /photos/{id}/content
  compliance.py  /reports/{id}/compliance, /checklists, /templates
  sync.py        /sync/upload, /sync/bootstrap
  complaints.py  /complaints (LBP complaint workflow)

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to roofreport/services/.
"""

from fastapi import APIRouter

from roofreport.routers.v1 import (
    complaints,
    compliance,
    defects,
    elements,
    photos,
    reports,
    sync,
    users,
    workflow,
)

api_router = APIRouter()
for _module in (users, reports, workflow, elements, defects, photos, compliance, sync, complaints):
    api_router.include_router(_module.router)
api_router.include_router(photos.content_router)
