"""Data types shared by the IP lookup service and its HTTP API."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Mapping


def _typed(mapping: Mapping[str, Any], key: str, kind: type) -> Any:
    """Return ``mapping[key]`` checked against ``kind``; missing or null gives the zero value."""
    value = mapping.get(key)
    if value is None:
        return kind()
    if kind in (int, float):
        if isinstance(value, bool):
            ok = False
        elif kind is float:
            ok = isinstance(value, (int, float))
        else:
            ok = isinstance(value, int)
        if ok:
            return kind(value)
    elif isinstance(value, kind):
        return value
    raise ValueError(f"field {key!r} must be of type {kind.__name__}")


@dataclass
class IPInfo:
    """Standardised description of an IP address's location and network."""

    ip_address: str = ""
    country_name: str = ""
    country_code: str = ""
    region_name: str = ""
    city_name: str = ""
    isp: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used by the API."""
        return {
            "ipAddress": self.ip_address,
            "countryName": self.country_name,
            "countryCode": self.country_code,
            "regionName": self.region_name,
            "cityName": self.city_name,
            "isp": self.isp,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp,
        }


@dataclass
class CachedIPInfo:
    """An :class:`IPInfo` held in the cache, with Unix times of storage and expiry."""

    data: IPInfo
    cached_at: float
    expires_at: float

    def is_expired(self) -> bool:
        """Return True once the current time is past the expiry time."""
        return time.time() > self.expires_at


@dataclass
class IPLocationNetResponse:
    """A lookup answer as returned by the iplocation.net endpoint."""

    is_proxy: bool = False
    source: str = ""
    ip_number: str = ""
    ip_version: int = 0
    ip_address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    country_name: str = ""
    country_code: str = ""
    isp: str = ""
    city_name: str = ""
    region_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "IPLocationNetResponse":
        """Build a response from decoded JSON; raise ValueError on a malformed document."""
        if not isinstance(data, dict):
            raise ValueError("response must be a JSON object")
        res = data.get("res")
        if res is None:
            res = {}
        if not isinstance(res, dict):
            raise ValueError("field 'res' must be an object")
        return cls(
            is_proxy=_typed(data, "isProxy", bool),
            source=_typed(data, "source", str),
            ip_number=_typed(res, "ipNumber", str),
            ip_version=_typed(res, "ipVersion", int),
            ip_address=_typed(res, "ipAddress", str),
            latitude=_typed(res, "latitude", float),
            longitude=_typed(res, "longitude", float),
            country_name=_typed(res, "countryName", str),
            country_code=_typed(res, "countryCode", str),
            isp=_typed(res, "isp", str),
            city_name=_typed(res, "cityName", str),
            region_name=_typed(res, "regionName", str),
        )

    def to_ip_info(self) -> IPInfo:
        """Convert to the standard form, stamped with the current Unix time."""
        return IPInfo(
            ip_address=self.ip_address,
            country_name=self.country_name,
            country_code=self.country_code,
            region_name=self.region_name,
            city_name=self.city_name,
            isp=self.isp,
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp=int(time.time()),
        )


@dataclass
class APIProvider:
    """An external source of IP information."""

    name: str
    url: str
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation used by the API."""
        return {"name": self.name, "url": self.url, "enabled": self.enabled}


@dataclass
class IPRequest:
    """Body of a lookup request; ``ipv_type`` is "4" or "6", empty meaning the default."""

    ip: str
    ipv_type: str = field(default="")

    @classmethod
    def from_dict(cls, data: Any) -> "IPRequest":
        """Build a request from decoded JSON; raise ValueError if it is malformed."""
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")
        ip = _typed(data, "ip", str)
        if not ip:
            raise ValueError("field 'ip' is required")
        return cls(ip=ip, ipv_type=_typed(data, "ipv_type", str))