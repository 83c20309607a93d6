"""
Shared fixtures: upstream clients mocked at the FetchResult level.
"""
from unittest.mock import MagicMock

import pytest

from gateway.clients import (
    MatchServiceClient,
    ResultsServiceClient,
    TeamServiceClient,
    TournamentServiceClient,
)


@pytest.fixture
def tournament_client():
    return MagicMock(spec=TournamentServiceClient)


@pytest.fixture
def team_client():
    return MagicMock(spec=TeamServiceClient)


@pytest.fixture
def match_client():
    return MagicMock(spec=MatchServiceClient)


@pytest.fixture
def results_client():
    return MagicMock(spec=ResultsServiceClient)
