"""
Pytest configuration and fixtures for the fleet maintenance tests.
"""

import pytest

from fleetpm import create_app
from fleetpm.extensions import bcrypt, db as _db, feed
from fleetpm.models import Account, Equipment, Supply, User


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Application on a fresh in-memory database; no context left pushed."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    """Push an app context for direct service calls."""
    with app.app_context():
        yield _db
        _db.session.remove()


@pytest.fixture(autouse=True)
def clean_feed():
    yield
    for subscription in list(feed._subscriptions):
        subscription.close()


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Identity Fixtures
# =============================================================================

def make_user(account, username, role, password="secret123"):
    user = User(
        account=account,
        username=username,
        role=role,
        password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
    )
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def account(db):
    account = Account(name="Quarry North")
    db.session.add(account)
    db.session.commit()
    return account


@pytest.fixture
def other_account(db):
    account = Account(name="Quarry South")
    db.session.add(account)
    db.session.commit()
    return account


@pytest.fixture
def admin(account):
    return make_user(account, "admin", "admin")


@pytest.fixture
def operator(account):
    return make_user(account, "instructor", "instructor")


@pytest.fixture
def second_operator(account):
    return make_user(account, "instructor2", "instructor")


# =============================================================================
# Fleet Fixtures
# =============================================================================

@pytest.fixture
def make_equipment(db, account):
    def factory(**overrides):
        fields = {
            "account_id": account.id,
            "name": "Excavator Cat 320",
            "model": "320D",
            "plate": "CAT-001",
            "current_hm": 5120,
            "fuel_level": 75,
            "next_pm_type": "PM3",
            "next_pm_due_hm": 5370,
            "last_pm_type": "PM1",
            "last_pm_hm": 5120,
            "sequence_index": 3,
            "in_use": False,
        }
        fields.update(overrides)
        equipment = Equipment(**fields)
        db.session.add(equipment)
        db.session.commit()
        return equipment

    return factory


@pytest.fixture
def excavator(make_equipment):
    return make_equipment()


@pytest.fixture
def loader(make_equipment):
    return make_equipment(
        name="Wheel Loader WA470",
        model="WA470-6",
        plate="KOM-992",
        current_hm=260,
        fuel_level=40,
        next_pm_type="PM2",
        next_pm_due_hm=510,
        last_pm_hm=260,
        sequence_index=1,
    )


@pytest.fixture
def make_supply(db, account):
    def factory(name, stock, unit="Units"):
        supply = Supply(account_id=account.id, name=name, stock=stock, unit=unit)
        db.session.add(supply)
        db.session.commit()
        return supply

    return factory


@pytest.fixture
def engine_oil(make_supply):
    return make_supply("Engine oil SAE 15W-40", 150, "Litres")


@pytest.fixture
def oil_filter(make_supply):
    return make_supply("Oil filter (large)", 80)


@pytest.fixture
def air_filter(make_supply):
    return make_supply("Air filter", 4)
