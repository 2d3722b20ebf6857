from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Minimal mapping for Open-Meteo weather codes.
WEATHER_CODE_DESC = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm w/ slight hail",
    99: "Thunderstorm w/ heavy hail",
}

# (field on HourlyPoint, key in the snapshot's hourly block)
HOURLY_METRICS = (
    ("temperature", "temperature_2m"),
    ("apparent_temperature", "apparent_temperature"),
    ("humidity", "relative_humidity_2m"),
    ("precipitation", "precipitation"),
    ("wind_speed", "wind_speed_10m"),
    ("uv_index", "uv_index"),
    ("dew_point", "dew_point_2m"),
    ("cloud_cover", "cloud_cover"),
    ("pressure", "pressure_msl"),
    ("visibility", "visibility"),
)

def _number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)

def _c_to_f(c: Optional[float]) -> Optional[float]:
    if not _number(c):
        return None
    return c * 9 / 5 + 32


@dataclass
class HourlyPoint:
    time: str
    temperature: float = 0
    apparent_temperature: float = 0
    humidity: float = 0
    precipitation: float = 0
    wind_speed: float = 0
    uv_index: float = 0
    dew_point: float = 0
    cloud_cover: float = 0
    pressure: float = 0
    visibility: float = 0


def _block(snapshot, name: str) -> Dict[str, Any]:
    # Tolerate snapshots whose nested blocks are missing or of the wrong type.
    if not isinstance(snapshot, dict):
        return {}
    weather = snapshot.get("weather")
    if not isinstance(weather, dict):
        return {}
    block = weather.get(name)
    return block if isinstance(block, dict) else {}


def _at(values: Optional[Sequence], i: int) -> float:
    if not isinstance(values, (list, tuple)) or i >= len(values) or not _number(values[i]):
        return 0
    return values[i]


def hourly_slice(snapshot: Optional[Dict[str, Any]], size: int = 24) -> List[HourlyPoint]:
    """
    Pair each of the first `size` hourly timestamps with the ten indexed metrics.
    Shorter series yield fewer points (no padding); missing values become 0.
    """
    hourly = _block(snapshot, "hourly")
    times = hourly.get("time")
    if not isinstance(times, (list, tuple)):
        return []

    out: List[HourlyPoint] = []
    for i in range(min(size, len(times))):
        metrics = {attr: _at(hourly.get(key), i) for attr, key in HOURLY_METRICS}
        out.append(HourlyPoint(time=times[i], **metrics))
    return out


def series(points: Sequence[HourlyPoint], metric: str) -> List[float]:
    return [getattr(p, metric) for p in points]


def series_bounds(values: Sequence[float]) -> Optional[Tuple[float, float]]:
    if not values:
        return None
    return min(values), max(values)


def sparkline_points(values: Sequence[float], width: float = 120, height: float = 32) -> str:
    """
    SVG polyline points scaled into a width x height box (y grows downwards).
    A flat series is drawn through the vertical middle.
    """
    bounds = series_bounds(values)
    if bounds is None:
        return ""
    lo, hi = bounds
    span = hi - lo
    step = width / (len(values) - 1) if len(values) > 1 else 0

    pts = []
    for i, v in enumerate(values):
        y = height / 2 if span == 0 else height - (v - lo) / span * height
        pts.append(f"{i * step:.1f},{y:.1f}")
    return " ".join(pts)


def current_summary(snapshot: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Flatten the snapshot's `current` block into display values, or None if absent:
    {
      temperature_c, temperature_f,
      apparent_c, apparent_f,
      humidity, wind_speed, precipitation,
      weather_code, weather_desc
    }
    """
    cur = _block(snapshot, "current")
    if not cur:
        return None

    code = cur.get("weather_code")
    if not isinstance(code, int):
        code = None
    desc = WEATHER_CODE_DESC.get(code, f"Code {code}") if code is not None else "—"
    temp_c = cur.get("temperature_2m")
    feels_c = cur.get("apparent_temperature")

    return {
        "temperature_c": temp_c,
        "temperature_f": _c_to_f(temp_c),
        "apparent_c": feels_c,
        "apparent_f": _c_to_f(feels_c),
        "humidity": cur.get("relative_humidity_2m"),
        "wind_speed": cur.get("wind_speed_10m"),
        "precipitation": cur.get("precipitation"),
        "weather_code": code,
        "weather_desc": desc,
    }
