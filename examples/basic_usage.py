"""Basic textgen client usage."""
import os

from textgen import APIError, Message, MessagesRequest, TextgenClient

client = TextgenClient(
    base_url="https://api.anthropic.com/v1",
    api_key=os.environ["ANTHROPIC_KEY"],
)

try:
    resp = client.create_message(MessagesRequest(
        model="claude-3-haiku-20240307",
        max_tokens=256,
        messages=[Message.user("Hello, world!")],
    ))
except APIError as e:
    print(f"Messages error, type: {e.type}, message: {e.message}")
else:
    print(resp.text())
    print(f"Tokens used: {resp.usage.input_tokens} in, {resp.usage.output_tokens} out")
