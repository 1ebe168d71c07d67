#!/usr/bin/env python3
"""dagcanvas CLI - subcommands for the DAG editor backend."""

import argparse
import json
import sys

import httpx

from .core.config import Settings


def _json_out(data):
    print(json.dumps(data))
    sys.exit(0)


def _split_ids(value):
    """Parse a comma-separated id list."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def api_request(method, endpoint, json_body=None, api_base=None):
    """Make a request to the dagcanvas backend."""
    base = api_base or Settings.from_env().resolved_api_base
    url = f"{base}{endpoint}"

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.request(method, url, json=json_body)
    except httpx.HTTPError as e:
        _json_out({"status": "error", "error": f"Connection failed: {e}. Is the dagcanvas backend running?"})

    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", "Unknown error")
        except ValueError:
            detail = response.text
        _json_out({"status": "error", "error": f"API error ({response.status_code}): {detail}"})

    return response.json()


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args):
    from .backend.main import run
    run(host=args.host, port=args.port)


# ── Graph ────────────────────────────────────────────────────────────────────

def cmd_get_graph(args):
    _json_out(api_request("GET", "/graph"))


def cmd_new(args):
    _json_out(api_request("POST", "/graph/new"))


def cmd_add_node(args):
    _json_out(api_request("POST", "/nodes", json_body={"label": args.label}))


def cmd_add_edge(args):
    _json_out(api_request("POST", "/edges", json_body={
        "source": args.source,
        "target": args.target,
    }))


def cmd_select(args):
    _json_out(api_request("POST", "/selection", json_body={
        "node_ids": _split_ids(args.node_ids),
        "edge_ids": _split_ids(args.edge_ids),
        "additive": args.additive,
    }))


def cmd_delete_selected(args):
    _json_out(api_request("DELETE", "/selection"))


def cmd_validate(args):
    _json_out(api_request("GET", "/graph/validate"))


def cmd_auto_layout(args):
    _json_out(api_request("POST", "/layout/auto", json_body={"direction": args.direction}))


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser():
    parser = argparse.ArgumentParser(description="dagcanvas CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    sub.add_parser("get-graph")
    sub.add_parser("new")

    p = sub.add_parser("add-node")
    p.add_argument("--label", required=True)

    p = sub.add_parser("add-edge")
    p.add_argument("--source", required=True)
    p.add_argument("--target", required=True)

    p = sub.add_parser("select")
    p.add_argument("--node-ids", default=None)
    p.add_argument("--edge-ids", default=None)
    p.add_argument("--additive", action="store_true")

    sub.add_parser("delete-selected")
    sub.add_parser("validate")

    p = sub.add_parser("auto-layout")
    p.add_argument("--direction", default=None)

    return parser


COMMANDS = {
    "serve": cmd_serve,
    "get-graph": cmd_get_graph,
    "new": cmd_new,
    "add-node": cmd_add_node,
    "add-edge": cmd_add_edge,
    "select": cmd_select,
    "delete-selected": cmd_delete_selected,
    "validate": cmd_validate,
    "auto-layout": cmd_auto_layout,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
