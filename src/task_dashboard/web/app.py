"""Web dashboard API for the task dashboard."""

import json
from contextlib import asynccontextmanager
from dataclasses import replace

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from task_dashboard.config import get_config
from task_dashboard.core.controller import (
    ACTIONS,
    MODAL_MODES,
    DashboardController,
    create_controller,
)
from task_dashboard.web.dashboard import get_dashboard_html


def _controller(request: Request) -> DashboardController:
    return request.app.state.controller


async def _body(request: Request) -> dict:
    raw = await request.body()
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _state(controller: DashboardController, ok: bool = True) -> JSONResponse:
    snapshot = controller.snapshot()
    snapshot["ok"] = ok
    return JSONResponse(snapshot)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


def _not_found(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=404)


# ── Handlers ──────────────────────────────────────────────────────────────────


async def index(request: Request):
    return HTMLResponse(get_dashboard_html())


async def api_state(request: Request):
    return _state(_controller(request))


async def api_reload(request: Request):
    controller = _controller(request)
    ok = await run_in_threadpool(controller.load_tasks)
    return _state(controller, ok)


async def api_toggle_expand(request: Request):
    controller = _controller(request)
    await run_in_threadpool(controller.toggle_expand, request.path_params["key"])
    return _state(controller)


async def api_open_modal(request: Request):
    controller = _controller(request)
    mode = request.path_params["mode"]
    if mode not in MODAL_MODES:
        return _bad_request(f"Unknown modal mode: {mode}")
    try:
        body = await _body(request)
    except ValueError as e:
        return _bad_request(str(e))

    if mode == "new":
        controller.open_new_task()
    elif mode == "jira":
        controller.open_jira_import()
    elif mode == "subtask":
        node = controller.find_node(str(body.get("task_id", "")))
        if not node:
            return _not_found("Task not found")
        controller.open_add_subtask(node)
    else:
        record = controller.find_record(str(body.get("id", "")))
        if not record:
            return _not_found("Task not found")
        if mode == "edit":
            controller.open_edit(record)
        else:
            controller.open_view(record)
    return _state(controller)


async def api_save(request: Request):
    controller = _controller(request)
    try:
        changes = await _body(request)
    except ValueError as e:
        return _bad_request(str(e))
    if not controller.form_open:
        return _bad_request("No form is open")
    ok = await run_in_threadpool(controller.save, changes)
    return _state(controller, ok)


async def api_close_modal(request: Request):
    controller = _controller(request)
    controller.close_modal()
    return _state(controller)


async def api_view_parent(request: Request):
    controller = _controller(request)
    controller.view_parent()
    return _state(controller)


async def api_run_action(request: Request):
    controller = _controller(request)
    action = request.path_params["action"]
    if action not in ACTIONS:
        return _bad_request(f"Unknown action: {action}")
    try:
        body = await _body(request)
    except ValueError as e:
        return _bad_request(str(e))
    record = controller.find_record(str(body.get("id", "")))
    if not record:
        return _not_found("Task not found")
    ok = await run_in_threadpool(controller.run_action, record, action)
    return _state(controller, ok)


async def api_dismiss_error(request: Request):
    controller = _controller(request)
    controller.dismiss_error()
    return _state(controller)


# ── App ───────────────────────────────────────────────────────────────────────


def create_app(controller: DashboardController | None = None) -> Starlette:
    if controller is None:
        controller = create_controller(get_config())

    @asynccontextmanager
    async def lifespan(app: Starlette):
        controller.start()
        try:
            yield
        finally:
            controller.stop()

    routes = [
        Route("/", index),
        Route("/api/state", api_state),
        Route("/api/reload", api_reload, methods=["POST"]),
        Route("/api/expand/{key}", api_toggle_expand, methods=["POST"]),
        Route("/api/modal/save", api_save, methods=["POST"]),
        Route("/api/modal/close", api_close_modal, methods=["POST"]),
        Route("/api/modal/parent", api_view_parent, methods=["POST"]),
        Route("/api/modal/{mode}", api_open_modal, methods=["POST"]),
        Route("/api/actions/{action}", api_run_action, methods=["POST"]),
        Route("/api/error/dismiss", api_dismiss_error, methods=["POST"]),
    ]
    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.controller = controller
    return app


def run_server(host: str = "127.0.0.1", port: int = 8787):
    config = replace(get_config(), host=host, port=port)
    app = create_app(create_controller(config))
    uvicorn.run(app, host=host, port=port)
