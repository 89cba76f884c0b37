"""Pytest fixtures for time-to-pay engine tests."""

from __future__ import annotations

from datetime import date

import pytest

from factories import MONDAY, day, make_settings
from timepay_engine.config import Settings
from timepay_engine.models import CompensationContract, Employee, PayPeriodKind


@pytest.fixture
def settings() -> Settings:
    """Settings with default windows and thresholds, independent of the environment."""
    return make_settings()


@pytest.fixture
def period() -> tuple[date, date]:
    """A two-week period starting on a Monday."""
    return MONDAY, day(13)


@pytest.fixture
def hourly_employee() -> Employee:
    """Hourly server at $15.00/hr."""
    return Employee(
        id="emp-alice",
        name="Alice Server",
        position="Server",
        contracts=(CompensationContract.hourly(1500),),
    )


@pytest.fixture
def salaried_employee() -> Employee:
    """Salaried manager at $2000 biweekly, hired 5 days into the period."""
    return Employee(
        id="emp-bob",
        name="Bob Manager",
        position="Manager",
        hire_date=day(5),
        contracts=(CompensationContract.salary(200000, PayPeriodKind.BIWEEKLY),),
    )


@pytest.fixture
def daily_rate_employee() -> Employee:
    """Cook on a daily rate derived from $1000 over 6 days."""
    return Employee(
        id="emp-carol",
        name="Carol Cook",
        position="Cook",
        contracts=(CompensationContract.daily_rate(100000, 6),),
    )


@pytest.fixture
def per_job_contractor() -> Employee:
    """Contractor paid per job from manual payments."""
    return Employee(
        id="emp-dave",
        name="Dave Plumber",
        position="Maintenance",
        contracts=(CompensationContract.contractor_per_job(),),
    )
