"""Seed the shared activity-branch catalog. Safe to run repeatedly.

Usage: ``python -m app.seed``
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import cache
from app.models.activity_branch import ActivityBranch, DefaultActivityService

logger = logging.getLogger(__name__)

# (branch name, description, [(service name, description), ...])
ACTIVITY_BRANCHES: list[tuple[str, str, list[tuple[str, str]]]] = [
    (
        "Vehicle Mechanics",
        "Maintenance and repair of cars, motorcycles and commercial vehicles",
        [
            ("Oil change", "Engine oil and filter replacement"),
            ("General inspection", "Complete vehicle check-up"),
            ("Brake pad replacement", "Replacement of worn brake pads"),
            ("Wheel alignment and balancing", "Wheel alignment and tyre balancing"),
            ("Electronic diagnostics", "Fault scan with an automotive scanner"),
            ("Battery replacement", "Replacement of the vehicle battery"),
            ("Engine repair", "Engine maintenance and repair"),
            ("Tyre replacement", "Replacement of tyres"),
            ("Air conditioning repair", "Service of the air conditioning system"),
            ("Timing belt replacement", "Replacement of the timing belt"),
        ],
    ),
    (
        "Electrician",
        "Installation and maintenance of residential, commercial and industrial wiring",
        [
            ("Residential wiring", "Complete residential wiring installation"),
            ("Breaker panel maintenance", "Repair and maintenance of distribution boards"),
            ("Outlet installation", "Installation of outlets and switches"),
            ("Circuit breaker replacement", "Replacement of circuit breakers"),
            ("Ceiling fan installation", "Installation of ceiling fans"),
            ("Electric shower repair", "Repair of electric shower heaters"),
            ("LED lighting installation", "Conversion to LED lighting"),
            ("Network cabling", "Installation of network cables"),
            ("Intercom installation", "Installation of intercom systems"),
            ("Preventive maintenance", "Inspection and preventive maintenance"),
        ],
    ),
    (
        "Construction and Renovation",
        "Building work, renovations and finishing",
        [
            ("Wall construction", "Masonry wall construction"),
            ("House painting", "Interior and exterior painting"),
            ("Floor installation", "Ceramic and laminate flooring"),
            ("Bathroom renovation", "Complete bathroom renovation"),
            ("Door installation", "Installation of doors and windows"),
            ("Plastering", "Wall plastering and finishing"),
            ("Drywall ceiling", "Drywall ceilings and cornices"),
            ("Waterproofing", "Waterproofing services"),
            ("Demolition", "Controlled demolition"),
            ("Concrete slab", "Concrete slab construction"),
        ],
    ),
    (
        "Phone Repair",
        "Repair and maintenance of smartphones and tablets",
        [
            ("Screen replacement", "Replacement of a cracked or damaged screen"),
            ("Battery replacement", "Replacement of the phone battery"),
            ("Motherboard repair", "Repair of the main board"),
            ("Device unlocking", "Unlocking and factory reset"),
            ("Speaker replacement", "Replacement of speakers"),
            ("Camera repair", "Repair of front and rear cameras"),
            ("Charging port replacement", "Replacement of the USB connector"),
            ("Screen protector", "Application of a protective film"),
            ("Internal cleaning", "Cleaning of internal components"),
            ("Data recovery", "Recovery of photos and files"),
        ],
    ),
    (
        "Glazing",
        "Tempered glass, mirrors and aluminium frames",
        [
            ("Tempered glass installation", "Installation of tempered glass"),
            ("Broken glass replacement", "Replacement of damaged glass"),
            ("Mirror installation", "Installation of decorative mirrors"),
            ("Shower enclosure", "Installation of glass shower enclosures"),
            ("Glass door", "Installation of glass doors"),
            ("Aluminium window", "Installation of aluminium frames"),
            ("Glass railing", "Installation of glass railings"),
            ("Glass facade", "Installation of commercial facades"),
            ("Frame maintenance", "Repair of windows and doors"),
            ("Auto glass", "Windscreen and side window replacement"),
        ],
    ),
    (
        "Plumbing",
        "Installation and maintenance of water systems",
        [
            ("Sink unclogging", "Clearing sinks and drains"),
            ("Leak repair", "Fixing leaks of all kinds"),
            ("Faucet installation", "Installation and replacement of faucets"),
            ("Valve replacement", "Replacement of shut-off valves"),
            ("Shower installation", "Installation of showers"),
            ("Toilet repair", "Toilet maintenance"),
            ("Plumbing installation", "Complete pipework installation"),
            ("Water tank cleaning", "Cleaning of water tanks"),
            ("Sewer unclogging", "Clearing sewer pipes"),
            ("Filter installation", "Installation of water filters"),
        ],
    ),
    (
        "Beauty and Aesthetics",
        "Beauty, body care and personal care services",
        [
            ("Women's haircut", "Cut and styling"),
            ("Men's haircut", "Cut and finish"),
            ("Colouring and highlights", "Hair dye and highlights"),
            ("Keratin treatment", "Hair straightening"),
            ("Manicure and pedicure", "Nail care"),
            ("Waxing", "Body waxing"),
            ("Facial cleansing", "Facial treatment"),
            ("Relaxing massage", "Therapeutic massage"),
            ("Eyebrow design", "Eyebrow shaping"),
            ("Gel nails", "Gel nail application"),
        ],
    ),
    (
        "IT and Technology",
        "Computer and laptop maintenance and IT services",
        [
            ("Computer formatting", "Operating system reinstall"),
            ("Virus removal", "Malware and virus cleanup"),
            ("Hardware upgrade", "Memory and storage upgrades"),
            ("Laptop screen replacement", "Replacement of laptop displays"),
            ("Network setup", "Router and Wi-Fi configuration"),
            ("Data backup", "Backup of files and settings"),
            ("Printer setup", "Printer installation and configuration"),
            ("Software installation", "Installation of applications"),
            ("Computer cleaning", "Internal dust cleaning"),
            ("Remote support", "Remote technical assistance"),
        ],
    ),
    (
        "Veterinary",
        "Veterinary care for pets",
        [
            ("Consultation", "General veterinary consultation"),
            ("Vaccination", "Vaccine application"),
            ("Deworming", "Deworming treatment"),
            ("Bath and grooming", "Pet bath and grooming"),
            ("Neutering", "Neutering surgery"),
            ("Blood test", "Laboratory blood tests"),
            ("Dental cleaning", "Pet dental cleaning"),
            ("Microchipping", "Identification microchip"),
            ("Ultrasound", "Ultrasound examination"),
            ("Nail trimming", "Nail trimming"),
        ],
    ),
    (
        "Cleaning and Upkeep",
        "Residential, commercial and building cleaning",
        [
            ("Residential cleaning", "Regular house cleaning"),
            ("Post-construction cleaning", "Cleaning after building work"),
            ("Window cleaning", "Cleaning of windows and glass"),
            ("Upholstery cleaning", "Sofa and upholstery cleaning"),
            ("Carpet cleaning", "Carpet and rug washing"),
            ("Office cleaning", "Commercial office cleaning"),
            ("Facade washing", "Pressure washing of facades"),
            ("Mattress sanitising", "Mattress cleaning and sanitising"),
            ("Pool cleaning", "Swimming pool maintenance"),
            ("Garden upkeep", "Garden and lawn care"),
        ],
    ),
]


async def seed_activity_branches(session: AsyncSession) -> dict[str, int]:
    """Create missing branches and default services, matched by name."""
    branches_created = services_created = 0
    for branch_name, description, services in ACTIVITY_BRANCHES:
        result = await session.execute(
            select(ActivityBranch).where(ActivityBranch.name == branch_name)
        )
        branch = result.scalar_one_or_none()
        if branch is None:
            branch = ActivityBranch(name=branch_name, description=description)
            session.add(branch)
            await session.flush()
            branches_created += 1

        result = await session.execute(
            select(DefaultActivityService.name).where(
                DefaultActivityService.activity_branch_id == branch.id,
            )
        )
        existing = set(result.scalars().all())
        for service_name, service_description in services:
            if service_name in existing:
                continue
            session.add(
                DefaultActivityService(
                    activity_branch_id=branch.id,
                    name=service_name,
                    description=service_description,
                )
            )
            services_created += 1

    await session.commit()
    cache.invalidate_prefix("activity-branches")
    logger.info(
        "Seed complete: %d branches and %d default services created",
        branches_created, services_created,
    )
    return {"branches": branches_created, "services": services_created}


async def main() -> None:
    from app.core.database import async_session_factory, init_db
    from app.core.logging_config import configure_logging

    configure_logging()
    await init_db()
    async with async_session_factory() as session:
        await seed_activity_branches(session)


if __name__ == "__main__":
    asyncio.run(main())
