from unittest.mock import AsyncMock, MagicMock

import pytest

from forwarding_mgt.core.models import DestinationRef, ForwardingRule, SourceRef

from helpers import RecordingPresenter, rule_json


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def source_a():
    return SourceRef(source_type="box", source_name="A", source_id=1)


@pytest.fixture
def destination_b():
    return DestinationRef(destination_type="box", destination_name="B", destination_id=2)


@pytest.fixture
def api_client(source_a, destination_b):
    client = MagicMock()
    client.get_page = AsyncMock(return_value=[rule_json(1)])
    client.get_sources = AsyncMock(return_value=[source_a])
    client.get_destinations = AsyncMock(return_value=[destination_b])
    client.create_rule = AsyncMock(side_effect=lambda draft: ForwardingRule(
        id=7, source=draft.source, destination=draft.destination, keep_images=draft.keep_images))
    client.delete_entity = AsyncMock(return_value=None)
    return client
