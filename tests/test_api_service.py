from unittest import mock

import requests

from models.geometry_models import Rect
from models.highlight_models import Highlight
from services.api_service import APIService

HIGHLIGHT = Highlight("h1", 1, "gradient descent", Rect(300, 150, 150, 20), "s2", "Bob Rodriguez")


def make_response(payload=None, status=200):
    response = mock.Mock()
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error")
    return response


def test_unconfigured_service_does_not_send():
    service = APIService()
    with mock.patch("utils.api_utils.requests.request") as request:
        assert not service.submit_annotation(HIGHLIGHT, "note")
    request.assert_not_called()


def test_build_payload():
    payload = APIService("https://api.example.com/", lesson_id="nn-101").build_payload(HIGHLIGHT, "note")
    assert payload["lesson_id"] == "nn-101"
    assert payload["annotation"] == "note"
    assert payload["highlight"]["id"] == "h1"
    assert payload["highlight"]["rect"] == {"x": 300, "y": 150, "width": 150, "height": 20}


def test_submit_annotation_posts_once():
    service = APIService("https://api.example.com/", lesson_id="nn-101", timeout=5)
    with mock.patch("utils.api_utils.requests.request", return_value=make_response({"data": {"id": 1}})) as request:
        assert service.submit_annotation(HIGHLIGHT, "note")
    request.assert_called_once()
    args, kwargs = request.call_args
    assert args == ("POST", "https://api.example.com/annotations")
    assert kwargs["timeout"] == 5
    assert service.last_error is None


def test_submit_annotation_http_error():
    service = APIService("https://api.example.com")
    with mock.patch("utils.api_utils.requests.request", return_value=make_response({}, status=500)):
        assert not service.submit_annotation(HIGHLIGHT, "note")
    assert "500" in service.last_error


def test_submit_annotation_error_payload():
    service = APIService("https://api.example.com")
    with mock.patch("utils.api_utils.requests.request", return_value=make_response({"error": "invalid lesson"})):
        assert not service.submit_annotation(HIGHLIGHT, "note")
    assert "invalid lesson" in service.last_error


def test_submit_annotation_connection_error():
    service = APIService("https://api.example.com")
    with mock.patch("utils.api_utils.requests.request", side_effect=requests.exceptions.ConnectionError("down")):
        assert not service.submit_annotation(HIGHLIGHT, "note")
