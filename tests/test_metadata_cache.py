import pytest

from groundwater_chatbot.core.data_service import TransportFailure
from groundwater_chatbot.core.metadata_cache import MetadataCache


def test_states_loaded_once(service):
    cache = MetadataCache(service)
    first = cache.get_states()
    second = cache.get_states()

    assert first == second == service.states
    assert service.count("states") == 1


def test_districts_cached_per_state(service):
    cache = MetadataCache(service)
    assert cache.get_districts("Bihar") == ["Patna", "Gaya", "Nalanda"]
    assert cache.get_districts("Bihar") == ["Patna", "Gaya", "Nalanda"]
    assert cache.get_districts("Punjab") == ["Ludhiana", "Amritsar"]

    assert service.count("districts", "Bihar") == 1
    assert service.count("districts", "Punjab") == 1


def test_blocks_keyed_by_state_and_district(service):
    service.blocks[("Jharkhand", "Patna")] = ["Somewhere Else"]
    cache = MetadataCache(service)

    assert cache.get_blocks("Bihar", "Patna") == ["Danapur", "Phulwari"]
    assert cache.get_blocks("Jharkhand", "Patna") == ["Somewhere Else"]
    assert cache.get_blocks("Bihar", "Patna") == ["Danapur", "Phulwari"]

    assert service.count("blocks", "Bihar", "Patna") == 1
    assert service.count("blocks", "Jharkhand", "Patna") == 1


def test_failed_fetch_is_not_cached(service):
    cache = MetadataCache(service)
    service.meta_error = TransportFailure("down")

    with pytest.raises(TransportFailure):
        cache.get_states()

    service.meta_error = None
    assert cache.get_states() == service.states
    assert service.count("states") == 2


def test_clear_forces_reload(service):
    cache = MetadataCache(service)
    cache.get_states()
    cache.get_districts("Bihar")
    cache.get_blocks("Bihar", "Gaya")

    cache.clear()
    cache.get_states()
    cache.get_districts("Bihar")
    cache.get_blocks("Bihar", "Gaya")

    assert service.count("states") == 2
    assert service.count("districts", "Bihar") == 2
    assert service.count("blocks", "Bihar", "Gaya") == 2
