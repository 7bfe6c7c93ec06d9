from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

import roofreport.domain  # noqa: F401
from roofreport.db.base import Base, get_session_factory
from roofreport.domain.compliance import ComplianceAssessment
from roofreport.domain.defect import Photo
from roofreport.domain.report import Report, RoofElement
from roofreport.domain.user import User
from roofreport.main import create_app
from roofreport.services.storage import LocalStorage, get_storage


@pytest.fixture()
def db_url(tmp_path) -> str:
    return f"{tmp_path / 'roofreport_test.db'}"


@pytest.fixture()
def db(db_url):
    engine = create_engine(f"sqlite:///{db_url}")
    Base.metadata.create_all(engine)
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "media")


@pytest.fixture()
def client(db, db_url, storage):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_url}", poolclass=NullPool)
    factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: factory
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def mk_user(db: Session, email: str, role: str = "INSPECTOR", **fields) -> User:
    user = User(email=email, name=fields.pop("name", email.split("@")[0].title()), role=role, **fields)
    db.add(user)
    db.commit()
    return user


def mk_report(db: Session, inspector: User, **fields) -> Report:
    values = {
        "report_number": "RANZ-2026-00001",
        "property_address": "12 Kauri Street",
        "property_city": "Auckland",
        "property_region": "Auckland",
        "property_postcode": "1010",
        "property_type": "RESIDENTIAL_1",
        "inspection_date": datetime(2026, 3, 4, 9, 30, tzinfo=timezone.utc),
        "inspection_type": "VISUAL_ONLY",
        "client_name": "Harbour Body Corporate",
        "inspector_id": inspector.id,
        "status": "DRAFT",
    }
    values.update(fields)
    report = Report(**values)
    db.add(report)
    db.commit()
    return report


def mk_elements(db: Session, report: Report, count: int) -> list[RoofElement]:
    elements = [
        RoofElement(report_id=report.id, element_type="ROOF_CLADDING", location=f"Roof plane {n}")
        for n in range(1, count + 1)
    ]
    db.add_all(elements)
    db.commit()
    return elements


def mk_photos(db: Session, report: Report, count: int, **fields) -> list[Photo]:
    photos = [
        Photo(
            report_id=report.id,
            storage_key=f"reports/{report.id}/photos/{n}.jpg",
            url=f"/media/reports/{report.id}/photos/{n}.jpg",
            filename=f"{n}.jpg",
            original_filename=f"IMG_{n:04d}.jpg",
            mime_type="image/jpeg",
            file_size=1024,
            sort_order=n,
            original_hash=f"{n:064x}",
            camera_make="Apple",
            **fields,
        )
        for n in range(1, count + 1)
    ]
    db.add_all(photos)
    db.commit()
    return photos


def mk_assessment(db: Session, report: Report, results: dict) -> ComplianceAssessment:
    assessment = ComplianceAssessment(report_id=report.id, checklist_results=results)
    db.add(assessment)
    db.commit()
    return assessment


def headers(user: User) -> dict[str, str]:
    return {"X-User-Id": user.id}


def png_bytes(size: tuple[int, int] = (8, 8), colour: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, colour).save(buffer, format="PNG")
    return buffer.getvalue()
