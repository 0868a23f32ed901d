import time
import unittest

from fastapi.testclient import TestClient

from advisor.data_sources.base import CallableEnvironmentDataSource
from advisor.domain import AirQuality, HourlyPoint, HourlyTemp, Location, WeatherSnapshot
from advisor.errors import GeocodingError, UpstreamError, WeatherUnavailable
from advisor.geo import ReverseGeocodeResult
from advisor.main import app as fastapi_app
from advisor.orchestrator import AdviceResult, ReplyPath


class StubAdvisor:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.requests = []

    def handle(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.result


class StubGeocoder:
    def __init__(self, reverse=None, error=None):
        self._reverse = reverse
        self._error = error

    def forward(self, text):
        return None

    def reverse(self, latitude, longitude):
        if self._error:
            raise self._error
        return self._reverse


def _snapshot():
    start = int(time.time()) // 3600 * 3600
    return WeatherSnapshot(
        temp=18.5,
        condition="흐림",
        timezone_offset=32400,
        hourly=[HourlyPoint(dt=start + i * 3600, temp=18.0) for i in range(24)],
    )


def _source(weather):
    def fetch(lat, lon):
        if isinstance(weather, Exception):
            raise weather
        return weather

    return CallableEnvironmentDataSource(weather=fetch, air_quality=lambda lat, lon: None, pollen=lambda lat, lon: None)


class TestApi(unittest.TestCase):
    def setUp(self):
        import advisor.api as api_mod
        from advisor.config import settings

        self.api_mod = api_mod
        self.client = TestClient(fastapi_app)
        self._orig_advisor = api_mod.ADVISOR
        self._orig_geocoder = api_mod.GEOCODER
        self._orig_source = api_mod.DATA_SOURCE
        self._orig_max_len = settings.max_user_message_chars
        self._orig_api_key = settings.api_key

    def tearDown(self):
        from advisor.config import settings

        self.api_mod.ADVISOR = self._orig_advisor
        self.api_mod.GEOCODER = self._orig_geocoder
        self.api_mod.DATA_SOURCE = self._orig_source
        settings.max_user_message_chars = self._orig_max_len
        settings.api_key = self._orig_api_key

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_chat_full_response(self):
        self.api_mod.ADVISOR = StubAdvisor(AdviceResult(
            reply="맑아요",
            path=ReplyPath.GENERAL,
            location=Location(lat=37.5, lon=127.0, name="Seoul, South Korea"),
            air_quality=AirQuality(pm25=10.0, pm10=20.0),
            hourly_temps=[HourlyTemp(hour="3pm", temp=21)],
        ))

        resp = self.client.post("/v1/chat", json={"userInput": "서울 날씨", "sessionId": "s1", "uid": "u1"})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {
            "reply": "맑아요",
            "resolvedCoords": {"lat": 37.5, "lon": 127.0},
            "locationName": "Seoul, South Korea",
            "airQuality": {"pm25": 10.0, "pm10": 20.0},
            "hourlyTemps": [{"hour": "3pm", "temp": 21}],
        })
        sent = self.api_mod.ADVISOR.requests[0]
        self.assertEqual(sent.session_id, "s1")
        self.assertEqual(sent.uid, "u1")

    def test_chat_passes_coords(self):
        self.api_mod.ADVISOR = StubAdvisor(AdviceResult(reply="어디인가요?", path=ReplyPath.LOCATION_REQUIRED))

        resp = self.client.post("/v1/chat", json={"userInput": "날씨", "coords": {"latitude": 35.1, "longitude": 129.0}})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"reply": "어디인가요?"})
        coords = self.api_mod.ADVISOR.requests[0].coords
        self.assertEqual((coords.latitude, coords.longitude), (35.1, 129.0))

    def test_chat_upstream_error_keeps_status(self):
        self.api_mod.ADVISOR = StubAdvisor(error=UpstreamError("Resource exhausted", status_code=429))

        resp = self.client.post("/v1/chat", json={"userInput": "날씨"})

        self.assertEqual(resp.status_code, 429)
        body = resp.json()
        self.assertEqual(body["message"], "Resource exhausted")
        self.assertIn("error", body)

    def test_chat_rejects_long_message(self):
        from advisor.config import settings

        settings.max_user_message_chars = 5
        self.api_mod.ADVISOR = StubAdvisor(AdviceResult(reply="x", path=ReplyPath.GENERAL))
        resp = self.client.post("/v1/chat", json={"userInput": "toolong"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.api_mod.ADVISOR.requests, [])

    def test_chat_requires_user_input(self):
        resp = self.client.post("/v1/chat", json={})
        self.assertEqual(resp.status_code, 422)

    def test_requires_api_key_when_set(self):
        from advisor.config import settings

        settings.api_key = "sekret"
        self.api_mod.ADVISOR = StubAdvisor(AdviceResult(reply="ok", path=ReplyPath.GENERAL))

        missing = self.client.post("/v1/chat", json={"userInput": "hi"})
        self.assertEqual(missing.status_code, 401)

        wrong = self.client.post("/v1/chat", json={"userInput": "hi"}, headers={"X-API-Key": "nope"})
        self.assertEqual(wrong.status_code, 401)

        ok = self.client.post("/v1/chat", json={"userInput": "hi"}, headers={"X-API-Key": "sekret"})
        self.assertEqual(ok.status_code, 200)

    def test_reverse_geocode(self):
        self.api_mod.GEOCODER = StubGeocoder(reverse=ReverseGeocodeResult("Seoul", "South Korea"))
        resp = self.client.post("/v1/reverse-geocode", json={"latitude": 37.5, "longitude": 127.0})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"region": "Seoul, South Korea"})

    def test_reverse_geocode_no_result_is_unknown(self):
        self.api_mod.GEOCODER = StubGeocoder(reverse=None)
        resp = self.client.post("/v1/reverse-geocode", json={"latitude": 0, "longitude": 0})
        self.assertEqual(resp.json(), {"region": "Unknown"})

    def test_reverse_geocode_failure_500(self):
        self.api_mod.GEOCODER = StubGeocoder(error=GeocodingError("down"))
        resp = self.client.post("/v1/reverse-geocode", json={"latitude": 0, "longitude": 0})
        self.assertEqual(resp.status_code, 500)

    def test_weather_omits_hourly(self):
        self.api_mod.DATA_SOURCE = _source(_snapshot())
        resp = self.client.post("/v1/weather", json={"latitude": 37.5, "longitude": 127.0})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["temp"], 18.5)
        self.assertEqual(data["condition"], "흐림")
        self.assertNotIn("hourly", data)
        self.assertNotIn("daily", data)

    def test_weather_failure_500(self):
        self.api_mod.DATA_SOURCE = _source(WeatherUnavailable("down"))
        resp = self.client.post("/v1/weather", json={"latitude": 37.5, "longitude": 127.0})
        self.assertEqual(resp.status_code, 500)

    def test_weather_graph(self):
        self.api_mod.DATA_SOURCE = _source(_snapshot())
        resp = self.client.post("/v1/weather-graph", json={"latitude": 37.5, "longitude": 127.0})
        self.assertEqual(resp.status_code, 200)
        temps = resp.json()["hourlyTemps"]
        self.assertEqual(len(temps), 6)
        self.assertTrue(all(p["temp"] == 18 for p in temps))

    def test_delete_conversation(self):
        from advisor import conversation_manager

        conversation_manager.use_in_memory_store_for_tests()
        conversation_manager.add_user_message("s9", "hi")
        resp = self.client.delete("/v1/conversations/s9")
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(conversation_manager.get_history("s9"), [])


if __name__ == "__main__":
    unittest.main()
