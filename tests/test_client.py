import json
import unittest

import httpx

import context  # noqa: F401

from quiethn.client import HnClient
from quiethn.errors import DecodeError, TransportError

API = "https://hn.test/v0"


def make_client(handler):
    return HnClient(client=httpx.Client(transport=httpx.MockTransport(handler)), api_base=API)


class TestFetchTopIds(unittest.TestCase):
    def test_returns_ids_in_order(self):
        def handler(request):
            self.assertEqual(str(request.url), f"{API}/topstories.json")
            return httpx.Response(200, json=[3, 1, 2])

        self.assertEqual(make_client(handler).fetch_top_ids(), [3, 1, 2])

    def test_non_list_payload_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"error": "nope"}))
        with self.assertRaises(DecodeError):
            client.fetch_top_ids()

    def test_non_integer_ids_are_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, json=[1, "abc"]))
        with self.assertRaises(DecodeError):
            client.fetch_top_ids()

    def test_invalid_json_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))
        with self.assertRaises(DecodeError):
            client.fetch_top_ids()

    def test_http_error_status_is_transport_error(self):
        client = make_client(lambda request: httpx.Response(503))
        with self.assertRaises(TransportError):
            client.fetch_top_ids()

    def test_network_failure_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(TransportError) as ctx:
            make_client(handler).fetch_top_ids()
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)


class TestFetchItem(unittest.TestCase):
    def test_builds_raw_item(self):
        payload = {
            "id": 8863,
            "by": "dhouston",
            "descendants": 71,
            "kids": [8952, 9224],
            "score": 111,
            "time": 1175714200,
            "title": "My YC app: Dropbox - Throw away your USB drive",
            "type": "story",
            "url": "http://www.getdropbox.com/u/2/screencast.html",
            "extra_field": "ignored",
        }

        def handler(request):
            self.assertEqual(request.url.path, "/v0/item/8863.json")
            return httpx.Response(200, content=json.dumps(payload).encode())

        item = make_client(handler).fetch_item(8863)

        self.assertEqual(item.id, 8863)
        self.assertEqual(item.by, "dhouston")
        self.assertEqual(item.kids, (8952, 9224))
        self.assertEqual(item.text, "")
        self.assertEqual(item.url, payload["url"])
        self.assertEqual(item.comments_url, "https://news.ycombinator.com/item?id=8863")
        self.assertEqual(item.published.year, 2007)

    def test_text_post_has_no_url(self):
        payload = {"id": 121003, "type": "story", "title": "Ask HN", "text": "<i>or</i> is it?"}
        item = make_client(lambda request: httpx.Response(200, json=payload)).fetch_item(121003)
        self.assertEqual(item.url, "")
        self.assertEqual(item.text, "<i>or</i> is it?")

    def test_null_item_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b"null"))
        with self.assertRaises(DecodeError):
            client.fetch_item(1)

    def test_item_without_id_is_decode_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"type": "story"}))
        with self.assertRaises(DecodeError):
            client.fetch_item(1)

    def test_wrongly_typed_fields_are_decode_error(self):
        for payload in [
            {"id": 2, "type": "story", "url": 12345},
            {"id": 2, "type": "story", "title": ["a", "list"], "url": "https://example.com"},
            {"id": 2, "type": 7},
            {"id": 2, "type": "story", "kids": "abc"},
        ]:
            client = make_client(lambda request, payload=payload: httpx.Response(200, json=payload))
            with self.assertRaises(DecodeError, msg=repr(payload)):
                client.fetch_item(2)

    def test_http_error_status_is_transport_error(self):
        client = make_client(lambda request: httpx.Response(500))
        with self.assertRaises(TransportError):
            client.fetch_item(1)


class TestClose(unittest.TestCase):
    def test_injected_client_is_left_open(self):
        http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        with HnClient(client=http, api_base=API):
            pass
        self.assertFalse(http.is_closed)
        http.close()


if __name__ == "__main__":
    unittest.main()
