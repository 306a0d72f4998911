"""Pytest configuration and shared fixtures.

This adds the `src/` directory to `sys.path` so tests can import the
`quartermaster` package without requiring an editable install in CI, and
provides a seeded regiment (one active war, a yard, a destination, catalog
items and one profile per role) on in-memory SQLite sessions.
"""

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from quartermaster.database import init_db, make_session_factory  # noqa: E402
from quartermaster.domain.enums import ItemUnit, LocationType, Role  # noqa: E402
from quartermaster.models import (  # noqa: E402
    Item,
    Location,
    Membership,
    Profile,
    Regiment,
    War,
    Yard,
)
from quartermaster.services.membership_service import Member  # noqa: E402


@dataclass
class World:
    """Identifiers of the seeded rows."""

    regiment_id: int
    war_id: int
    other_war_id: int
    yard_id: int
    yard_location_id: int
    destination_id: int
    other_yard_id: int
    rifle_id: int
    shell_id: int
    truck_id: int
    tank_id: int
    members: dict[Role, Member]

    def actor(self, role: Role) -> Member:
        return self.members[role]


def seed(session: Session) -> World:
    """Insert the reference data every service test starts from."""
    regiment = Regiment(slug="rsi", name="Royal Supply Initiative")
    session.add(regiment)
    session.flush()

    war = War(regiment_id=regiment.id, name="War 112", status="active")
    old_war = War(regiment_id=regiment.id, name="War 111", status="ended")
    session.add_all([war, old_war])
    session.flush()
    regiment.active_war_id = war.id

    yard_location = Location(
        war_id=war.id, name="Lamplight Yard", type=LocationType.YARD.value, region="Westgate"
    )
    destination = Location(
        war_id=war.id, name="Scorpion Depot", type=LocationType.DEPOT.value, region="Deadlands"
    )
    session.add_all([yard_location, destination])
    session.flush()

    yard = Yard(war_id=war.id, name="Lamplight", location_id=yard_location.id)
    old_yard = Yard(war_id=old_war.id, name="Old Yard")
    session.add_all([yard, old_yard])

    rifle = Item(
        slug="rifle",
        name="Argenti Rifle",
        category="Small Arms",
        unit=ItemUnit.CRATE.value,
        crate_size=20,
        slot_count=1,
        cost_bmat=100,
    )
    shell = Item(
        slug="shell",
        name="120mm Shell",
        category="Heavy Ammunition",
        unit=ItemUnit.CRATE.value,
        crate_size=15,
        slot_count=2,
        cost_bmat=60,
        cost_emat=20,
    )
    truck = Item(
        slug="truck",
        name="Dunne Transport",
        category="Vehicles",
        unit=ItemUnit.VEHICLE.value,
        slot_count=1,
        cost_rmat=100,
    )
    tank = Item(
        slug="tank",
        name="Outlaw Tank",
        category="Vehicles",
        unit=ItemUnit.VEHICLE.value,
        slot_count=5,
        cost_rmat=150,
    )
    session.add_all([rifle, shell, truck, tank])

    members: dict[Role, Member] = {}
    for index, role in enumerate(Role):
        profile_id = f"profile-{role.value}"
        session.add(
            Profile(
                id=profile_id,
                regiment_id=regiment.id,
                discord_id=f"10000000000{index}",
                discord_name=role.value.title(),
                display_name=role.value.title(),
            )
        )
        session.add(Membership(profile_id=profile_id, regiment_id=regiment.id, role=role.value))
        members[role] = Member(profile_id=profile_id, regiment_id=regiment.id, role=role)

    session.commit()
    return World(
        regiment_id=regiment.id,
        war_id=war.id,
        other_war_id=old_war.id,
        yard_id=yard.id,
        yard_location_id=yard_location.id,
        destination_id=destination.id,
        other_yard_id=old_yard.id,
        rifle_id=rifle.id,
        shell_id=shell.id,
        truck_id=truck.id,
        tank_id=tank.id,
        members=members,
    )


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine with the full schema."""
    engine = create_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for testing."""
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def world(session) -> World:
    return seed(session)


@pytest.fixture
def seed_world():
    """Expose the seeding helper to tests that manage their own engine."""
    return seed
