"""FastAPI application: container inventory routes and the log websocket."""

import uvicorn
from absl import logging
from fastapi import APIRouter, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from container_logs.backend import runtime
from container_logs.constants import API_PREFIX, WS_PATH
from container_logs.core.messages import (
  MessageError,
  StartRequest,
  StopRequest,
  StoppedMessage,
  decode_client_message,
  encode,
)
from container_logs.server.registry import SessionRegistry

router = APIRouter(prefix=API_PREFIX, tags=["containers"])


def _ok(data):
  return {"success": True, "data": data}


def _fail(e):
  return JSONResponse(
    status_code=500, content={"success": False, "error": str(e)}
  )


@router.get("")
def get_containers():
  """List all containers."""
  try:
    containers = runtime.list_containers()
  except RuntimeError as e:
    return _fail(e)
  return _ok([c.to_dict() for c in containers])


@router.get("/runtime")
def get_runtime():
  """Report which container CLI is in use ("" when none)."""
  try:
    detected = runtime.detect_runtime()
  except RuntimeError as e:
    return _fail(e)
  return _ok({"runtime": detected or ""})


@router.get("/{container_id}/logs")
def get_logs(
  container_id: str,
  since: str | None = None,
  until: str | None = None,
  filter: str | None = None,
  tail: int | None = None,
):
  """Historical logs for one container."""
  try:
    logs = runtime.get_container_logs(
      container_id, since=since, until=until, filter=filter, tail=tail
    )
  except RuntimeError as e:
    return _fail(e)
  return _ok(logs)


def _make_sender(websocket):
  async def send(message):
    try:
      await websocket.send_text(encode(message))
    except (RuntimeError, WebSocketDisconnect) as e:
      # Socket already closed; the session is being torn down.
      logging.debug("Dropping %s for closed socket: %s", type(message), e)

  return send


async def _handle_frame(registry, session_id, send, raw):
  try:
    request = decode_client_message(raw)
  except MessageError as e:
    logging.warning("Dropping malformed websocket frame: %s", e)
    return

  if isinstance(request, StartRequest):
    await registry.start_stream(
      session_id,
      request.container_id,
      filter=request.filter,
      tail=request.tail,
      since=request.since,
    )
  elif isinstance(request, StopRequest):
    await registry.stop_stream(session_id)
    await send(StoppedMessage())


async def stream_logs(websocket: WebSocket):
  """Websocket endpoint; one session per connection."""
  registry: SessionRegistry = websocket.app.state.registry
  await websocket.accept()
  send = _make_sender(websocket)
  session_id = registry.open_session(send)
  try:
    while True:
      raw = await websocket.receive_text()
      await _handle_frame(registry, session_id, send, raw)
  except WebSocketDisconnect:
    logging.info("Client of session %s disconnected", session_id)
  finally:
    await registry.close_session(session_id)


def health():
  return {"status": "ok"}


def create_app(registry=None, runtime_name=None):
  """Build the application.

  Args:
      registry: SessionRegistry to use; a fresh one is created when None.
      runtime_name: Container CLI forced for live tails.
  """
  app = FastAPI(title="container-logs")
  app.state.registry = registry or SessionRegistry(runtime=runtime_name)
  app.include_router(router)
  app.add_api_route("/health", health, methods=["GET"])
  app.add_api_websocket_route(WS_PATH, stream_logs)
  return app


def serve(config):
  """Run the server with uvicorn until interrupted."""
  app = create_app(runtime_name=config.runtime)
  logging.info(
    "Serving on http://%s:%s (websocket %s)", config.host, config.port, WS_PATH
  )
  uvicorn.run(app, host=config.host, port=config.port, log_level="info")
