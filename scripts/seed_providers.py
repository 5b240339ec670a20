"""Seed the provider directory with the clinic's default doctors."""

import asyncio

from sqlalchemy import select

from app.database import AsyncSessionLocal, engine
from app.models.providers import providers
from app.schemas.providers import ProviderCreate
from app.services.provider_service import ProviderService

DEFAULT_PROVIDERS = [
    ProviderCreate(
        name="Dr. Sarah Johnson",
        specialization="Cardiology",
        email="sarah.johnson@clinic.example",
        experience_years=15,
        description="Board-certified cardiologist focused on preventive heart care.",
        availability=["Monday", "Wednesday", "Friday"],
    ),
    ProviderCreate(
        name="Dr. Michael Chen",
        specialization="Neurology",
        email="michael.chen@clinic.example",
        experience_years=12,
        description="Neurologist treating headaches, epilepsy and sleep disorders.",
        availability=["Tuesday", "Thursday"],
    ),
    ProviderCreate(
        name="Dr. Emily Williams",
        specialization="Pediatrics",
        email="emily.williams@clinic.example",
        experience_years=10,
        description="Pediatrician caring for children from newborns to adolescents.",
        availability=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
    ),
]


async def seed() -> None:
    """Insert default providers, skipping any whose email already exists."""
    service = ProviderService()
    created = 0

    async with AsyncSessionLocal() as db:
        for provider in DEFAULT_PROVIDERS:
            existing = await db.execute(
                select(providers.c.id).where(providers.c.email == provider.email)
            )
            if existing.first():
                print(f"- {provider.name} already present")
                continue
            await service.create_provider(db, provider)
            created += 1
            print(f"✓ Added {provider.name} ({', '.join(provider.availability)})")

    await engine.dispose()
    print(f"✓ Seeded {created} provider(s)")


if __name__ == "__main__":
    asyncio.run(seed())
