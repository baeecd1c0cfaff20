#!/usr/bin/env python3
"""
Simple WebSocket client: look up a nation's animal and talk to its spirit.

Usage:
    python examples/websocket_client.py [country] [question]
"""

import asyncio
import json
import sys
import uuid

import websockets  # type: ignore

URI = "ws://127.0.0.1:8000/ws/session"


async def request(websocket, action: str, **payload) -> dict:
    """Send one action and print pushed chunks until it completes; returns the last state."""
    request_id = str(uuid.uuid4())
    message = {"action": action, "payload": payload, "request_id": request_id}
    await websocket.send(json.dumps(message))

    last_state: dict = {}
    async for message in websocket:
        response = json.loads(message)
        chunk = response.get("chunk") or {}

        if response["status"] == "chunk" and chunk.get("type") == "text":
            print(chunk["data"], end="", flush=True)
        elif response["status"] == "chunk" and chunk.get("type") == "state":
            last_state = chunk["data"]
        elif response["request_id"] == request_id and response["status"] == "error":
            print(f"\n❌ {response['error']}")
            break
        elif response["request_id"] == request_id and response["status"] == "complete":
            break

    return last_state


async def main(country: str, question: str) -> None:
    print(f"Connecting to {URI}...")
    async with websockets.connect(URI) as websocket:
        welcome = json.loads(await websocket.recv())
        print(f"Suggestions: {', '.join(welcome['chunk']['data'].get('suggestions', []))}")

        state = await request(websocket, "search", country=country)
        if state.get("phase") != "READY":
            print(f"❌ {state.get('error', 'search failed')}")
            return

        profile = state["content"]
        print(f"\n🦉 {profile['title']} ({profile['subtitle']})")
        print(f"   {profile['description']}")
        print(f"   Traits: {', '.join(badge['label'] for badge in profile['badges'])}")

        state = await request(websocket, "switch_view", view="CHAT")
        for message in state["content"]["messages"]:
            print(f"\n👻 {message['text']}")

        print(f"\n📤 {question}\n👻 ", end="")
        await request(websocket, "chat", text=question)
        print()


if __name__ == "__main__":
    country_arg = sys.argv[1] if len(sys.argv) > 1 else "Japan"
    question_arg = sys.argv[2] if len(sys.argv) > 2 else "What do you mean to the people here?"
    asyncio.run(main(country_arg, question_arg))
