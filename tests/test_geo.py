import asyncio

import httpx

from headache_tracker.services.geo import reverse_geocode


def transport(routes):
    def handler(request):
        for host, response in routes.items():
            if request.url.host == host:
                return response(request) if callable(response) else response
        return httpx.Response(404)
    return httpx.MockTransport(handler)


def test_bigdatacloud_result():
    def bdc(request):
        assert request.url.params["latitude"] == "40.7"
        assert request.url.params["longitude"] == "-74.0"
        return httpx.Response(200, json={
            "city": "", "locality": "Manhattan",
            "principalSubdivision": "New York", "countryName": "United States of America",
        })

    result = asyncio.run(reverse_geocode(40.7, -74.0, transport=transport({"api.bigdatacloud.net": bdc})))
    assert result == {
        "city": "Manhattan",
        "state": "New York",
        "country": "United States of America",
        "source": "bigdatacloud",
    }


def test_falls_back_to_nominatim():
    def nominatim(request):
        assert request.headers["User-Agent"].startswith("headache-tracker")
        return httpx.Response(200, json={"address": {"town": "Sintra", "state": "Lisboa", "country": "Portugal"}})

    routes = {
        "api.bigdatacloud.net": httpx.Response(500),
        "nominatim.openstreetmap.org": nominatim,
    }
    result = asyncio.run(reverse_geocode(38.8, -9.4, transport=transport(routes)))
    assert result["city"] == "Sintra"
    assert result["source"] == "nominatim"


def test_none_when_all_fail():
    routes = {
        "api.bigdatacloud.net": httpx.Response(200, json={"locality": "", "countryName": ""}),
        "nominatim.openstreetmap.org": httpx.Response(200, json={"error": "Unable to geocode"}),
    }
    assert asyncio.run(reverse_geocode(0.0, 0.0, transport=transport(routes))) is None
