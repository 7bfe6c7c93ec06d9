"""Reference data installed at startup: compliance checklists and report templates.

Seeding is idempotent; rows are matched on checklist key / template name and
existing rows are left untouched.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roofreport.domain.enums import InspectionType
from roofreport.repositories.reference import ChecklistRepository, ReportTemplateRepository

logger = logging.getLogger(__name__)


def _item(item_id: str, section: str, item: str, description: str, required: bool = True) -> dict:
    return {
        "id": item_id,
        "section": section,
        "item": item,
        "description": description,
        "required": required,
    }


CHECKLISTS: list[dict] = [
    {
        "key": "e2_as1",
        "name": "E2/AS1 4th Edition - External Moisture",
        "category": "compliance",
        "standard": "E2/AS1",
        "items": [
            _item("e2_3_1", "E2.3.1", "Precipitation Shedding",
                  "Roof sheds water and snow without ponding or accumulation."),
            _item("e2_3_2", "E2.3.2", "Water Penetration Prevention",
                  "Building elements prevent water penetration causing undue dampness or damage."),
            _item("e2_pitch", "E2/AS1 Table 1", "Roof Pitch Adequacy",
                  "Pitch is adequate for the installed cladding profile and exposure."),
            _item("e2_flashing_junctions", "E2/AS1 9.1", "Flashing at Junctions",
                  "Roof/wall junctions and changes of plane are flashed."),
            _item("e2_flashing_penetrations", "E2/AS1 9.2", "Penetration Flashings",
                  "Pipes, vents and skylights carry weathertight flashings."),
            _item("e2_underlay", "E2/AS1 8.5", "Underlay Installation",
                  "Underlay is lapped, sealed at penetrations and suited to the pitch."),
            _item("e2_gutters", "E2/AS1 10.1", "Gutter and Drainage",
                  "Gutters and downpipes are sized and installed to carry expected rainfall."),
            _item("e2_ventilation", "E2/AS1 8.6", "Roof Cavity Ventilation",
                  "Roof space is ventilated against condensation.", required=False),
            _item("e2_compatibility", "E2/AS1 4.1", "Material Compatibility",
                  "Materials are compatible and suited to the exposure zone."),
        ],
    },
    {
        "key": "metal_roof_cop",
        "name": "NZ Metal Roof and Wall Cladding Code of Practice",
        "category": "code_of_practice",
        "standard": "NZMRM COP v3",
        "items": [
            _item("cop_fixings", "COP 5", "Fixing Type and Pattern",
                  "Fasteners, spacing and washers follow the manufacturer and COP tables."),
            _item("cop_laps", "COP 7", "Side and End Laps",
                  "Sheet laps are oriented away from prevailing weather and sealed where required."),
            _item("cop_turn_ups", "COP 8.3", "Turn-ups and Turn-downs",
                  "Sheet ends are turned up at ridges and turned down into gutters."),
            _item("cop_flashings", "COP 8", "Flashing Cover and Fixing",
                  "Flashings provide the minimum cover and are fixed to allow thermal movement."),
            _item("cop_swarf", "COP 14", "Swarf and Debris",
                  "Cut-off swarf and debris have been removed from the cladding surface."),
            _item("cop_dissimilar", "COP 4.9", "Dissimilar Metals",
                  "No incompatible metals or run-off from incompatible materials."),
        ],
    },
    {
        "key": "b2_durability",
        "name": "B2 Durability",
        "category": "compliance",
        "standard": "NZBC B2",
        "items": [
            _item("b2_15yr", "B2.3.1(b)", "15 Year Durability",
                  "Roof cladding is expected to perform for at least 15 years with normal maintenance."),
            _item("b2_5yr", "B2.3.1(c)", "5 Year Durability",
                  "Readily accessible components perform for at least 5 years."),
            _item("b2_maintenance", "B2.3.2", "Maintenance Access",
                  "Components needing maintenance can be reached and inspected."),
            _item("b2_corrosion", "B2/AS1", "Corrosion Protection",
                  "Coatings and materials suit the atmospheric corrosivity zone."),
        ],
    },
]

_COMMON_SECTIONS = ["Scope of Works", "Methodology", "Equipment Used", "Findings", "Conclusions"]

TEMPLATES: list[dict] = [
    {
        "name": "Full Roofing Inspection",
        "description": "Comprehensive inspection with every standard section",
        "inspection_type": InspectionType.FULL_INSPECTION.value,
        "sections": _COMMON_SECTIONS + ["Recommendations", "Executive Summary"],
        "checklists": ["e2_as1", "metal_roof_cop", "b2_durability"],
    },
    {
        "name": "Pre-Purchase Inspection",
        "description": "Condition assessment for a prospective buyer",
        "inspection_type": InspectionType.PRE_PURCHASE.value,
        "sections": _COMMON_SECTIONS + ["Recommendations", "Executive Summary"],
        "checklists": ["e2_as1", "b2_durability"],
    },
    {
        "name": "Dispute Resolution Inspection",
        "description": "Expert-witness report suitable for tribunal or Board proceedings",
        "inspection_type": InspectionType.DISPUTE_RESOLUTION.value,
        "sections": _COMMON_SECTIONS + ["Expert Declaration"],
        "checklists": ["e2_as1", "metal_roof_cop", "b2_durability"],
    },
    {
        "name": "Visual Only Assessment",
        "description": "Ground-level or non-accessed visual assessment",
        "inspection_type": InspectionType.VISUAL_ONLY.value,
        "sections": _COMMON_SECTIONS + ["Limitations"],
        "checklists": ["e2_as1"],
    },
    {
        "name": "Maintenance Review",
        "description": "Periodic maintenance condition review",
        "inspection_type": InspectionType.MAINTENANCE_REVIEW.value,
        "sections": _COMMON_SECTIONS + ["Maintenance Schedule"],
        "checklists": ["e2_as1"],
    },
]


async def seed_reference_data(session: AsyncSession) -> int:
    """Insert missing checklists and templates. Returns the number of rows added."""
    checklists = ChecklistRepository(session)
    templates = ReportTemplateRepository(session)
    added = 0
    for checklist in CHECKLISTS:
        if await checklists.get_by_key(checklist["key"]) is None:
            await checklists.create(**checklist)
            added += 1
    for template in TEMPLATES:
        if await templates.get_by_name(template["name"]) is None:
            await templates.create(**template, is_default=True, is_active=True)
            added += 1
    return added


async def run_seed(factory: async_sessionmaker[AsyncSession]) -> None:
    async with factory() as session:
        added = await seed_reference_data(session)
        await session.commit()
    if added:
        logger.info("Seeded %d reference rows", added)
