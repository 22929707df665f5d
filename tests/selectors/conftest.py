import pytest

from tests.factories import seed_execution_data

YEARLY_2023_2024 = "WHERE eli.is_yearly = true AND eli.year >= 2023 AND eli.year <= 2024"
YTD_SUM = "COALESCE(SUM(eli.ytd_amount), 0)"


@pytest.fixture
def seeded_session(session):
    seed_execution_data(session)
    return session
