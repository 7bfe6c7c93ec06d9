"""Pydantic schemas package.

Folder intent:
  common.py      CamelModel base + HealthResponse (all schemas inherit CamelModel)
  user.py        users and the LBP number pattern
  report.py      reports, executive summary, dashboard stats, audit log rows
  element.py     roof elements
  defect.py      defects (with their photos)
  photo.py       photo metadata, reorder and integrity results
  compliance.py  compliance assessments, checklists, templates
  workflow.py    validation results, signature, review actions
  sync.py        mobile sync upload and bootstrap payloads
  complaint.py   LBP complaints
"""
