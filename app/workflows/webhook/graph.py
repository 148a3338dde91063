from __future__ import annotations

from typing import TYPE_CHECKING

from langgraph.graph import END, START, StateGraph

from app.workflows.webhook.state import Terminal, WebhookState

if TYPE_CHECKING:
    from app.workflows.webhook.controller import WebhookController


def _next_unless_terminal(next_node: str):
    def _route(state: WebhookState) -> str:
        return next_node if state.get("terminal") == Terminal.PENDING else "end"

    return _route


def _route_after_check_sender(state: WebhookState) -> str:
    if state.get("terminal") != Terminal.PENDING:
        return "end"
    return "fetch_message" if state.get("sender_authorized") else "refuse"


def build_webhook_graph(controller: WebhookController):
    graph = StateGraph(WebhookState)

    graph.add_node("validate", controller.validate_node)
    graph.add_node("check_sender", controller.check_sender_node)
    graph.add_node("refuse", controller.refuse_node)
    graph.add_node("fetch_message", controller.fetch_message_node)
    graph.add_node("normalize", controller.normalize_node)
    graph.add_node("resolve_session", controller.resolve_session_node)
    graph.add_node("ask_nlu", controller.ask_nlu_node)
    graph.add_node("dispatch_reply", controller.dispatch_reply_node)

    graph.add_edge(START, "validate")
    graph.add_conditional_edges(
        "validate",
        _next_unless_terminal("check_sender"),
        {"check_sender": "check_sender", "end": END},
    )
    graph.add_conditional_edges(
        "check_sender",
        _route_after_check_sender,
        {"fetch_message": "fetch_message", "refuse": "refuse", "end": END},
    )
    graph.add_edge("refuse", END)
    graph.add_conditional_edges(
        "fetch_message",
        _next_unless_terminal("normalize"),
        {"normalize": "normalize", "end": END},
    )
    graph.add_edge("normalize", "resolve_session")
    graph.add_edge("resolve_session", "ask_nlu")
    graph.add_conditional_edges(
        "ask_nlu",
        _next_unless_terminal("dispatch_reply"),
        {"dispatch_reply": "dispatch_reply", "end": END},
    )
    graph.add_edge("dispatch_reply", END)

    return graph.compile()
