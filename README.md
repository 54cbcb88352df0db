# ipcheck

A small HTTP API that returns geolocation details for an IP address:
country, region, city, ISP and coordinates. It asks upstream providers
in round-robin order and keeps each answer in memory for one hour.

## Installation

```
pip install .
```

## Running the server

```
ipcheck
ipcheck --host 127.0.0.1 --port 9000
```

By default the server listens on all interfaces (`--host 0.0.0.0`) on
port 8080 (`--port`). It runs on Flask's built-in server. A health check
is available at `/health` and at `/api/v1/health`.

## Endpoints

All API routes except the root `/health` live under `/api/v1`.

| Method | Path                 | Purpose                                   |
|--------|----------------------|-------------------------------------------|
| POST   | `/ip/lookup`         | Look up an IP given as a JSON body        |
| GET    | `/ip/lookup`         | Look up an IP given as query parameters   |
| GET    | `/cache/stats`       | Number of cached entries and their times  |
| DELETE | `/cache`             | Clear the cache                           |
| GET    | `/providers`         | List the configured providers             |
| PUT    | `/providers/enable`  | Enable or disable a provider by name      |
| GET    | `/health`            | Service health                            |

Every response carries permissive CORS headers, and any `OPTIONS`
request is answered with status 204 and an empty body.

### Looking up an address

```
curl -X POST localhost:8080/api/v1/ip/lookup \
     -H 'Content-Type: application/json' \
     -d '{"ip": "8.8.8.8", "ipv_type": "4"}'

curl 'localhost:8080/api/v1/ip/lookup?ip=8.8.8.8'
```

`ipv_type` is `"4"` or `"6"` and defaults to `"4"`. A successful reply
looks like:

```json
{
  "success": true,
  "data": {
    "ipAddress": "8.8.8.8",
    "countryName": "United States of America",
    "countryCode": "US",
    "regionName": "California",
    "cityName": "Mountain View",
    "isp": "Google LLC",
    "latitude": 37.4,
    "longitude": -122.07,
    "timestamp": 1700000000
  }
}
```

A malformed body, a missing `ip`, an invalid address or an invalid
`ipv_type` gives status 400 with an `error` field (and `details` for a
malformed body). If every provider fails, the reply is 500.

### Cache

`GET /api/v1/cache/stats` returns `total_entries` and, for each entry,
its `ip`, `cached_at` and `expires_at` (Unix seconds) and `expired`.
`DELETE /api/v1/cache` empties it.

### Managing providers

```
curl -X PUT localhost:8080/api/v1/providers/enable \
     -H 'Content-Type: application/json' \
     -d '{"name": "iplocation.net", "enabled": false}'
```

`name` is required; `enabled` defaults to `false`. An unknown provider
name gives status 404.

## Using it from Python

```python
from ipcheck.service import IPService
from ipcheck.api import create_app, is_valid_ip

service = IPService()            # optionally IPService(session=requests.Session())
info = service.get_ip_info("8.8.8.8", "4")
print(info.to_dict())

print([p.to_dict() for p in service.list_providers()])
print(service.cache_stats())

app = create_app(service)        # a Flask application
```

`IPService.get_ip_info` raises `LookupFailedError` when no provider can
answer, and `IPService.enable_provider` raises `ProviderNotFoundError`
for an unknown name; both derive from `ProviderError`. The data types
(`IPInfo`, `APIProvider`, `IPRequest`, `IPLocationNetResponse`,
`CachedIPInfo`) live in `ipcheck.models`.

## Limits

- The cache lives in process memory only; it is lost on restart and is
  not shared between processes.
- The only provider that can actually answer lookups is
  `iplocation.net`. `IPService.add_provider` accepts any `APIProvider`,
  but lookups through a provider of any other name fail as unsupported.
- There is no authentication and no configuration file.

## Running the tests

```
pip install '.[test]'
pytest
```