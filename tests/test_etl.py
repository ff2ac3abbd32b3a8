import json

import pytest
import requests
from directory.models import Category
from etl import pipeline as pipeline_module
from etl import sources as sources_module
from etl.pipeline import load_providers, run as run_pipeline
from etl.sources import Source, SourceError, fetch_raw, fetch_source, to_providers


@pytest.fixture
def sample_data():
    """One small record list per category; some records carry a misleading category key."""
    return {
        Category.HOSPITALS: [
            {"name": "مستشفى السلام", "area": "المعادي", "phone": "0225240250 - 0225240077"},
        ],
        Category.PHARMACIES: [
            {"name": "صيدلية العزبي", "area": "مدينة نصر", "phone": "19600", "category": "labs"},
        ],
        Category.CLINICS: [
            {"name": "عيادة النخبة", "specialty": "أسنان", "area": "الدقي", "phone": "0237482211"},
            {"name": "مركز الرؤية", "specialty": "رمد", "area": "مدينة نصر", "phone": "0222745566"},
        ],
        Category.LABS: [
            {"name": "معامل البرج", "specialty": "تحاليل طبية", "area": "الدقي", "phone": "19911"},
        ],
        Category.DOCTORS: [
            {"name": "د. أحمد حسن", "specialty": "باطنة", "area": "المعادي", "phone": "0100", "type": "x"},
        ],
    }


@pytest.fixture
def data_dir(tmp_path, sample_data):
    for category, records in sample_data.items():
        (tmp_path / f"{category.value}.json").write_text(
            json.dumps(records, ensure_ascii=False), encoding="utf-8"
        )
    return tmp_path


@pytest.fixture
def file_sources(data_dir):
    return [(str(data_dir / f"{c.value}.json"), c) for c in Category]


class FakeResponse:
    def __init__(self, status: int = 200, payload=None, text: str | None = None):
        self.status_code = status
        self._payload = payload
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


@pytest.fixture
def fake_http(monkeypatch, sample_data):
    """Serve sample_data from http://example.test/<category>.json; labs answers 404."""
    requested = []

    def fake_get(url, timeout=None):
        requested.append(url)
        name = url.rsplit("/", 1)[-1].removesuffix(".json")
        if name == "labs":
            return FakeResponse(404)
        if name == "broken":
            return FakeResponse(200, text="<html>not json</html>")
        if name == "offline":
            raise requests.ConnectionError("connection refused")
        return FakeResponse(200, payload=sample_data[Category(name)])

    monkeypatch.setattr(sources_module.SESSION, "get", fake_get)
    return requested


class TestFetchSource:
    """Single-source fetch, parse and tagging."""

    def test_every_record_tagged_with_source_category(self, file_sources):
        for locator, category in file_sources:
            providers = fetch_source(Source(locator, category))
            assert providers
            assert all(p.category == category for p in providers)

    def test_category_in_file_is_ignored(self, data_dir):
        """A 'category' key inside the record never overrides the source."""
        providers = fetch_source((str(data_dir / "pharmacies.json"), Category.PHARMACIES))
        assert providers[0].category is Category.PHARMACIES

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(SourceError) as exc_info:
            fetch_source((str(tmp_path / "nope.json"), Category.LABS))
        assert exc_info.value.locator.endswith("nope.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "labs.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SourceError, match="invalid JSON"):
            fetch_raw(str(path))

    def test_non_array_raises(self, tmp_path):
        path = tmp_path / "labs.json"
        path.write_text('{"name": "x"}', encoding="utf-8")
        with pytest.raises(SourceError, match="expected a JSON array"):
            fetch_raw(str(path))

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "labs.json"
        path.write_bytes(b'[{"name": "\xff\xfe bad", "area": "x"}]')
        with pytest.raises(SourceError, match="invalid JSON"):
            fetch_raw(str(path))

    def test_invalid_records_skipped(self, caplog):
        """Records without a name or area are dropped; the rest survive."""
        records = [
            {"name": "معامل البرج", "area": "الدقي", "phone": "19911"},
            {"name": "", "area": "الدقي"},
            {"name": "بلا منطقة"},
            "not an object",
        ]
        providers = to_providers(records, Category.LABS, "labs.json")
        assert [p.name for p in providers] == ["معامل البرج"]
        assert "skipping" in caplog.text

    def test_numeric_phone_accepted(self):
        providers = to_providers([{"name": "x", "area": "y", "phone": 19911}], Category.LABS)
        assert providers[0].phone_numbers == ["19911"]

    def test_http_404_raises(self, fake_http):
        with pytest.raises(SourceError, match="404"):
            fetch_source(("http://example.test/labs.json", Category.LABS))

    def test_http_connection_error_raises(self, fake_http):
        with pytest.raises(SourceError, match="connection refused"):
            fetch_source(("http://example.test/offline.json", Category.LABS))

    def test_http_bad_body_raises(self, fake_http):
        with pytest.raises(SourceError, match="invalid JSON"):
            fetch_source(("http://example.test/broken.json", Category.LABS))


class TestLoadProviders:
    """Concurrent load of every source with per-source failure isolation."""

    def test_loads_and_concatenates_in_source_order(self, file_sources, sample_data):
        result = run_pipeline(file_sources)

        assert not result.failures
        expected = [r["name"] for c in Category for r in sample_data[c]]
        assert [p.name for p in result.providers] == expected

    def test_counts_per_category(self, file_sources):
        result = run_pipeline(file_sources)
        assert result.counts[Category.CLINICS] == 2
        assert result.counts[Category.LABS] == 1

    def test_one_missing_file_leaves_others_complete(self, data_dir, file_sources, sample_data):
        (data_dir / "labs.json").unlink()
        result = run_pipeline(file_sources)

        assert list(result.failures) == [str(data_dir / "labs.json")]
        assert result.counts[Category.LABS] == 0
        for category in Category:
            if category is not Category.LABS:
                assert result.counts[category] == len(sample_data[category])

    def test_http_404_leaves_others_complete(self, fake_http, sample_data):
        """labs.json returning 404 does not affect the other four sources."""
        http_sources = [(f"http://example.test/{c.value}.json", c) for c in Category]
        result = run_pipeline(http_sources)

        assert len(fake_http) == 5
        assert list(result.failures) == ["http://example.test/labs.json"]
        assert not result.is_empty
        loaded = {p.name for p in result.providers}
        for category in Category:
            for record in sample_data[category]:
                assert (record["name"] in loaded) == (category is not Category.LABS)

    def test_bad_encoding_leaves_others_complete(self, data_dir, file_sources, sample_data):
        """A labs.json that is not valid UTF-8 fails alone."""
        (data_dir / "labs.json").write_bytes(b'[{"name": "\xff\xfe bad", "area": "x", "phone": "1"}]')
        result = run_pipeline(file_sources)

        assert list(result.failures) == [str(data_dir / "labs.json")]
        assert len(result.providers) == sum(
            len(sample_data[c]) for c in Category if c is not Category.LABS
        )

    def test_unexpected_error_is_a_source_failure(self, file_sources, monkeypatch, caplog):
        """An error other than SourceError still fails only its own source."""
        def flaky_fetch(source):
            if source.category is Category.DOCTORS:
                raise RuntimeError("disk on fire")
            return fetch_source(source)

        monkeypatch.setattr(pipeline_module, "fetch_source", flaky_fetch)
        result = run_pipeline(file_sources)

        doctors = file_sources[-1][0]
        assert list(result.failures) == [doctors]
        assert "disk on fire" in result.failures[doctors]
        assert result.counts[Category.DOCTORS] == 0
        assert result.counts[Category.CLINICS] == 2
        assert "Unexpected error loading" in caplog.text

    def test_all_sources_failing_is_empty(self, tmp_path):
        missing = [(str(tmp_path / f"{c.value}.json"), c) for c in Category]
        result = run_pipeline(missing)

        assert result.is_empty
        assert len(result.failures) == 5
        assert all(n == 0 for n in result.counts.values())

    def test_all_sources_empty_is_empty(self, tmp_path):
        for c in Category:
            (tmp_path / f"{c.value}.json").write_text("[]", encoding="utf-8")
        result = run_pipeline([(str(tmp_path / f"{c.value}.json"), c) for c in Category])

        assert result.is_empty
        assert not result.failures

    def test_async_entry_point(self, file_sources):
        import asyncio

        result = asyncio.run(load_providers(file_sources))
        assert len(result.providers) == 6
