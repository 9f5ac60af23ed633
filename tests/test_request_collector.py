import pytest

from catalog.endpoint import CoverageStatus
from core.coverage_tracker import CoverageTracker
from core.request_collector import RequestCollector, extract_path

SPEC = {
    "openapi": "3.0.0",
    "paths": {
        "/orders": {"post": {"responses": {"201": {}, "400": {}}}},
        "/orders/{id}": {"get": {"responses": {"200": {}}}},
    },
}


@pytest.fixture
def collector():
    return RequestCollector(CoverageTracker.from_spec(SPEC))


def test_extract_path():
    assert extract_path("https://shop.example.com/orders/7?expand=items#top") == "/orders/7"
    assert extract_path("/orders?page=2") == "/orders"
    assert extract_path("https://shop.example.com") == "/"
    assert extract_path("") == ""


def test_tracker_is_required():
    with pytest.raises(ValueError):
        RequestCollector(None)


def test_collect_from_url(collector):
    request = collector.collect("post", "https://shop.example.com/orders?dry=1", 201, request_body={"sku": "A1"})

    assert request.method == "POST"
    assert request.path == "/orders"
    assert request.endpoint_key == ("POST", "/orders")
    assert collector.get_requests()[0]["request_body"] == {"sku": "A1"}


def test_record_request_accepts_loose_keys(collector):
    request = collector.record_request({
        "method": "GET",
        "url": "http://localhost/orders/12",
        "statusCode": "200",
        "responseBody": {"id": 12},
    })

    assert request.status_code == 200
    assert request.response_body == {"id": 12}
    assert request.matched_by == "template"
    snapshot = collector.tracker.summarize()
    assert snapshot.endpoint("GET", "/orders/{id}").status == CoverageStatus.COVERED


def test_begin_then_complete(collector):
    correlation_id = collector.begin("POST", "http://localhost/orders")

    pending = collector.tracker.get_requests()[0]
    assert pending.status_code is None
    assert collector.tracker.summarize().endpoint("POST", "/orders").status == CoverageStatus.NOT_COVERED

    collector.complete(correlation_id, 400, response_body={"error": "bad sku"})

    assert len(collector.tracker.get_requests()) == 1
    assert pending.status_code == 400
    assert collector.get_requests()[0]["status_code"] == 400
    assert collector.tracker.summarize().endpoint("POST", "/orders").status == CoverageStatus.PARTIALLY_COVERED


def test_correlation_ids_are_unique(collector):
    first = collector.begin("POST", "/orders")
    second = collector.begin("POST", "/orders")

    assert first != second


def test_start_clears_collected_requests(collector):
    collector.collect("POST", "/orders", 201)

    collector.start()

    assert collector.get_requests() == []


def test_record_request_strips_query_and_fragment_from_path(collector):
    request = collector.record_request({"method": "POST", "path": "/orders?dry=1#summary", "status": 201})

    assert request.path == "/orders"
    assert request.endpoint_key == ("POST", "/orders")
    assert collector.tracker.get_unmatched() == []
    assert collector.get_requests()[0]["path"] == "/orders"


def test_record_request_accepts_full_url_as_path(collector):
    request = collector.record_request({"method": "GET", "path": "https://shop.example.com/orders/3?x=1", "status": 200})

    assert request.path == "/orders/3"
    assert request.matched_by == "template"
