"""HTTP client for the container inventory and historical log routes."""

from urllib.parse import quote

import requests

from container_logs.backend.runtime import Container
from container_logs.constants import API_PREFIX

_TIMEOUT_SECONDS = 30


def _get(base_url, path, params=None):
  url = f"{base_url.rstrip('/')}{API_PREFIX}{path}"
  try:
    resp = requests.get(url, params=params, timeout=_TIMEOUT_SECONDS)
  except requests.RequestException as e:
    raise RuntimeError(f"Could not reach {url}: {e}") from e
  try:
    body = resp.json()
  except ValueError:
    raise RuntimeError(
      f"Unexpected response from {url} (HTTP {resp.status_code})"
    ) from None
  if not body.get("success"):
    raise RuntimeError(body.get("error") or f"HTTP {resp.status_code}")
  return body.get("data")


def fetch_containers(base_url):
  """Return the server's container list as Container objects."""
  return [Container(**row) for row in _get(base_url, "")]


def fetch_runtime(base_url):
  """Return "docker", "podman", or "" when the server has no runtime."""
  return (_get(base_url, "/runtime") or {}).get("runtime") or ""


def fetch_logs(
  base_url, container_id, since=None, until=None, filter=None, tail=None
):
  """Return historical log text for one container."""
  params = {
    key: value
    for key, value in (
      ("since", since),
      ("until", until),
      ("filter", filter),
    )
    if value
  }
  if tail is not None:
    params["tail"] = tail
  path = f"/{quote(container_id, safe='')}/logs"
  return _get(base_url, path, params=params) or ""
