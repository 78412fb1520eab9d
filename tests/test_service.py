"""Tests for the SearchService lifecycle, rebuild pipeline and searches."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from conftest import FakeEncoder
from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import (
    ConfigError,
    DocumentBuildError,
    EmptyQueryError,
    EncodingError,
    ServiceNotReadyError,
)
from vidsearch.search.index import EmbeddingIndex
from vidsearch.search.models import EmbeddingRecord
from vidsearch.search.service import SearchService, ServiceState, start_service


def _embeddings(index: EmbeddingIndex) -> dict[str, list[float]]:
    return {key: rec.embedding for key, rec in index.entries()}


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_initialize_transitions_to_ready(service: SearchService, encoder: FakeEncoder) -> None:
    assert service.state == ServiceState.UNINITIALIZED
    asyncio.run(service.initialize())
    assert service.state == ServiceState.READY
    assert encoder.loaded


def test_operations_require_initialize(service: SearchService, videos: list[dict]) -> None:
    with pytest.raises(ServiceNotReadyError):
        asyncio.run(service.semantic_search("cat"))
    with pytest.raises(ServiceNotReadyError):
        asyncio.run(service.rebuild_all(videos))


def test_initialize_failure_marks_failed(config: VSConfig) -> None:
    class _Broken(FakeEncoder):
        def load(self) -> None:
            raise ConfigError("no model")

    service = SearchService(config, _Broken())
    with pytest.raises(ConfigError):
        asyncio.run(service.initialize())
    assert service.state == ServiceState.FAILED
    assert service.status()["state"] == "failed"


def test_initialize_loads_existing_index(config: VSConfig, encoder: FakeEncoder) -> None:
    config.index_path.write_text(json.dumps({"7": {"embedding": [1.0] + [0.0] * 7}}))
    service = asyncio.run(start_service(config, encoder))
    assert len(service.index) == 1
    assert service.status()["indexed_videos"] == 1


# ---------------------------------------------------------------------------
# Semantic search
# ---------------------------------------------------------------------------

def test_scenario_cat_music_ranks_cat_video_first(
    service: SearchService, videos: list[dict]
) -> None:
    async def _run():
        await service.initialize()
        await service.rebuild_all(videos[:2])
        return await service.semantic_search("cat music", limit=10, threshold=0.5)

    hits = asyncio.run(_run())
    assert [h.video_id for h in hits] == [1]
    assert hits[0].rank == 1
    assert hits[0].metadata.title == "Cat playing piano"


def test_semantic_search_lowercases_query(service: SearchService, encoder: FakeEncoder) -> None:
    async def _run():
        await service.initialize()
        await service.semantic_search("  CAT Music ", threshold=0.0)

    asyncio.run(_run())
    assert encoder.calls == ["cat music"]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_fails_before_encoding(
    service: SearchService, encoder: FakeEncoder, query
) -> None:
    async def _run():
        await service.initialize()
        await service.semantic_search(query)

    with pytest.raises(EmptyQueryError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.status_code == 400
    assert encoder.calls == []


def test_semantic_search_defaults_from_config(
    config: VSConfig, encoder: FakeEncoder, videos: list[dict]
) -> None:
    config.semantic_threshold = 0.0
    config.default_limit = 1
    service = SearchService(config, encoder)

    async def _run():
        await service.initialize()
        await service.rebuild_all(videos)
        unbounded = await service.semantic_search("dog beach", limit=10)
        return unbounded, await service.semantic_search("dog beach")

    unbounded, hits = asyncio.run(_run())
    assert len(unbounded) == 3
    assert [h.video_id for h in hits] == [2]


def test_encoder_timeout_surfaces_as_encoding_error(config: VSConfig) -> None:
    config.encode_timeout_sec = 0.05
    service = SearchService(config, FakeEncoder(delay=0.5))

    async def _run():
        await service.initialize()
        await service.semantic_search("cat")

    with pytest.raises(EncodingError) as exc_info:
        asyncio.run(_run())
    assert "timed out" in str(exc_info.value)
    assert exc_info.value.status_code == 502


# ---------------------------------------------------------------------------
# Rebuild
# ---------------------------------------------------------------------------

def test_rebuild_empty_is_a_noop(service: SearchService, encoder: FakeEncoder) -> None:
    async def _run():
        await service.initialize()
        return await service.rebuild_all([])

    report = asyncio.run(_run())
    assert report.total == 0
    assert report.saves == 0
    assert len(service.index) == 0
    assert not service.config.index_path.exists()
    assert encoder.calls == []


def test_rebuild_embeds_and_persists(service: SearchService, videos: list[dict]) -> None:
    async def _run():
        await service.initialize()
        return await service.rebuild_all(videos)

    report = asyncio.run(_run())
    assert report.embedded == 3
    assert report.failed == []

    on_disk = json.loads(service.config.index_path.read_text())
    assert set(on_disk) == {"1", "2", "3"}
    assert on_disk["2"]["metadata"]["title"] == "Dog running on beach"
    assert on_disk["2"]["metadata"]["like_count"] == 310
    assert "updated_at" in on_disk["2"]["metadata"]


def test_rebuild_is_idempotent(config: VSConfig, videos: list[dict]) -> None:
    async def _run(service: SearchService):
        await service.initialize()
        await service.rebuild_all(videos)
        first = _embeddings(service.index)
        await service.rebuild_all(videos)
        return first, _embeddings(service.index)

    first, second = asyncio.run(_run(SearchService(config, FakeEncoder())))
    assert first == second
    assert len(second) == 3


def test_encode_is_deterministic_across_services(
    tmp_path: Path, config: VSConfig, videos: list[dict]
) -> None:
    other = config.model_copy(update={"index_path": tmp_path / "other.json"})

    async def _run(cfg: VSConfig):
        service = await start_service(cfg, FakeEncoder())
        await service.rebuild_all(videos)
        return _embeddings(service.index)

    assert asyncio.run(_run(config)) == asyncio.run(_run(other))


def test_rebuild_isolates_item_failures(
    config: VSConfig, videos: list[dict], capsys: pytest.CaptureFixture
) -> None:
    config.batch_size = 2
    extra = [
        {"id": 10, "title": "Broken tags", "tags": "[oops"},
        {"id": 11, "title": "Poison pill", "description": "explode"},
        {"id": 12, "title": "Surf trip", "category": "Travel"},
        {"id": 13, "title": "Kitten nap"},
    ]
    service = SearchService(config, FakeEncoder(fail_on=("explode",)))

    async def _run():
        await service.initialize()
        return await service.rebuild_all(extra + videos)

    report = asyncio.run(_run())
    assert report.total == 7
    assert report.embedded == 5
    assert {f.video_id for f in report.failed} == {10, 11}
    assert set(_embeddings(service.index)) == {"1", "2", "3", "12", "13"}
    err = capsys.readouterr().err
    assert "skipping video 10" in err
    assert "skipping video 11" in err


def test_rebuild_saves_periodically_and_at_end(
    config: VSConfig, encoder: FakeEncoder, monkeypatch: pytest.MonkeyPatch
) -> None:
    config.batch_size = 2
    config.save_every_batches = 2
    service = SearchService(config, encoder)
    sizes: list[int] = []
    original_save = service.index.save

    def _counting_save() -> None:
        sizes.append(len(service.index))
        original_save()

    monkeypatch.setattr(service.index, "save", _counting_save)
    items = [{"id": i, "title": f"cat {i}"} for i in range(1, 8)]

    async def _run():
        await service.initialize()
        return await service.rebuild_all(items)

    report = asyncio.run(_run())
    assert report.batches == 4
    # after batch 2 (4 videos) and the final flush (7 videos)
    assert sizes == [4, 7]
    assert report.saves == 2


def test_rebuild_batches_run_concurrently(config: VSConfig) -> None:
    config.batch_size = 4
    config.encode_timeout_sec = 5.0
    service = SearchService(config, FakeEncoder(delay=0.2))
    items = [{"id": i, "title": f"dog {i}"} for i in range(1, 5)]

    async def _run():
        await service.initialize()
        loop = asyncio.get_running_loop()
        start = loop.time()
        await service.rebuild_all(items)
        return loop.time() - start

    elapsed = asyncio.run(_run())
    # four 0.2s encodes in one batch overlap instead of taking 0.8s
    assert elapsed < 0.6
    assert len(service.index) == 4


def test_rebuild_timeout_is_a_per_item_failure(config: VSConfig) -> None:
    config.encode_timeout_sec = 0.05
    service = SearchService(config, FakeEncoder(delay=0.3))

    async def _run():
        await service.initialize()
        return await service.rebuild_all([{"id": 1, "title": "cat"}])

    report = asyncio.run(_run())
    assert report.embedded == 0
    assert "timed out" in report.failed[0].error


def test_rebuild_rejects_vectors_of_another_dimension(config: VSConfig) -> None:
    service = SearchService(config, FakeEncoder(dim=4))
    service.index.upsert(99, EmbeddingRecord(embedding=[1.0] * 8))
    service.state = ServiceState.READY

    report = asyncio.run(service.rebuild_all([{"id": 1, "title": "cat"}]))
    assert report.embedded == 0
    assert "dimensions" in report.failed[0].error
    assert 1 not in service.index


# ---------------------------------------------------------------------------
# Single-video updates
# ---------------------------------------------------------------------------

def test_update_one_flushes_immediately(service: SearchService, videos: list[dict]) -> None:
    async def _run():
        await service.initialize()
        await service.update_one(videos[2])

    asyncio.run(_run())
    on_disk = json.loads(service.config.index_path.read_text())
    assert list(on_disk) == ["3"]


def test_update_one_malformed_fails_fast(service: SearchService, encoder: FakeEncoder) -> None:
    async def _run():
        await service.initialize()
        await service.update_one({"id": 4, "title": "x", "tags": "{bad"})

    with pytest.raises(DocumentBuildError):
        asyncio.run(_run())
    assert encoder.calls == []
    assert not service.config.index_path.exists()


def test_update_one_encoder_failure_fails_fast(config: VSConfig) -> None:
    service = SearchService(config, FakeEncoder(fail_on=("boom",)))

    async def _run():
        await service.initialize()
        await service.update_one({"id": 4, "title": "boom"})

    with pytest.raises(EncodingError):
        asyncio.run(_run())
    assert 4 not in service.index


def test_concurrent_updates_to_one_key_are_serialized(config: VSConfig) -> None:
    config.encode_timeout_sec = 5.0
    service = SearchService(config, FakeEncoder(delay=0.05))
    versions = [{"id": 1, "title": t} for t in ("cat", "dog", "surf")]

    async def _run():
        await service.initialize()
        await asyncio.gather(*(service.update_one(v) for v in versions))

    asyncio.run(_run())
    # gather starts coroutines in order and the per-key lock is FIFO
    assert service.index.get(1).metadata.title == "surf"
    on_disk = json.loads(service.config.index_path.read_text())
    assert on_disk["1"]["metadata"]["title"] == "surf"


def test_remove_one(service: SearchService, videos: list[dict]) -> None:
    async def _run():
        await service.initialize()
        await service.rebuild_all(videos)
        return await service.remove_one(2), await service.remove_one(2)

    first, second = asyncio.run(_run())
    assert (first, second) == (True, False)
    assert set(json.loads(service.config.index_path.read_text())) == {"1", "3"}


# ---------------------------------------------------------------------------
# Hybrid search
# ---------------------------------------------------------------------------

def test_hybrid_keyword_only_scenario(service: SearchService, videos: list[dict]) -> None:
    async def _run():
        await service.initialize()
        await service.rebuild_all(videos)
        return await service.hybrid_search(
            "pasta", videos, semantic_weight=0.0, keyword_weight=1.0, limit=10
        )

    hits = asyncio.run(_run())
    assert [h.video_id for h in hits] == [3]
    assert hits[0].combined_score == hits[0].keyword_score == 1.0


def test_hybrid_blends_and_filters(service: SearchService, videos: list[dict]) -> None:
    async def _run():
        await service.initialize()
        await service.rebuild_all(videos)
        return await service.hybrid_search("dog beach", videos, limit=10)

    hits = asyncio.run(_run())
    assert hits[0].video_id == 2
    for h in hits:
        assert h.combined_score == pytest.approx(h.semantic_score * 0.7 + h.keyword_score * 0.3)
        assert h.combined_score > 0.3


def test_hybrid_no_videos_returns_empty(service: SearchService, encoder: FakeEncoder) -> None:
    async def _run():
        await service.initialize()
        return await service.hybrid_search("cat", [])

    assert asyncio.run(_run()) == []
    assert encoder.calls == []


def test_hybrid_blank_query(service: SearchService, videos: list[dict]) -> None:
    with pytest.raises(EmptyQueryError):
        asyncio.run(service.hybrid_search(" ", videos))


def test_hybrid_skips_malformed_candidates(
    service: SearchService, videos: list[dict], capsys: pytest.CaptureFixture
) -> None:
    bad = {"id": 50, "title": "Cat pasta", "tags": "nope"}

    async def _run():
        await service.initialize()
        return await service.hybrid_search(
            "pasta", [bad, *videos], semantic_weight=0.0, keyword_weight=1.0
        )

    hits = asyncio.run(_run())
    assert [h.video_id for h in hits] == [3]
    assert "skipping video 50" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Catalog drift
# ---------------------------------------------------------------------------

def test_rebuild_drops_videos_missing_from_input(
    service: SearchService, videos: list[dict]
) -> None:
    async def _run():
        await service.initialize()
        await service.rebuild_all(videos)
        # video 1 left the published set
        report = await service.rebuild_all(videos[1:])
        hits = await service.semantic_search("cat", limit=1, threshold=0.0)
        return report, hits

    report, hits = asyncio.run(_run())
    assert report.pruned == 1
    assert set(json.loads(service.config.index_path.read_text())) == {"2", "3"}
    assert hits and hits[0].video_id != 1


def test_rebuild_keeps_old_record_when_item_fails(config: VSConfig, videos: list[dict]) -> None:
    async def _run():
        service = await start_service(config, FakeEncoder())
        await service.rebuild_all(videos)
        before = service.index.get(3).embedding
        service.encoder = FakeEncoder(fail_on=("pasta",))
        report = await service.rebuild_all(videos)
        return service, before, report

    service, before, report = asyncio.run(_run())
    assert report.pruned == 0
    assert [f.video_id for f in report.failed] == [3]
    assert service.index.get(3).embedding == before


def test_initialize_discards_index_of_other_dimension(
    config: VSConfig, capsys: pytest.CaptureFixture
) -> None:
    config.index_path.write_text(json.dumps({"7": {"embedding": [1.0, 0.0, 0.0]}}))
    service = asyncio.run(start_service(config, FakeEncoder()))

    assert service.state == ServiceState.READY
    assert len(service.index) == 0
    assert service.index.dim is None
    assert "run a rebuild" in capsys.readouterr().err
