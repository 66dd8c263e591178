import pytest

from planwise.config import PlanningConfig
from planwise.extraction.engine import extract_financial_data

from scenarios import ConversationScenarios


@pytest.fixture
def config():
    return PlanningConfig()


@pytest.fixture
def salaried_facts():
    """£55,000 a year, £2,000 a month outgoings, retire at 65, medium risk."""
    return extract_financial_data(ConversationScenarios.scenario_1_salaried_saver()["messages"])


@pytest.fixture
def first_home_facts():
    return extract_financial_data(ConversationScenarios.scenario_2_first_home()["messages"])
