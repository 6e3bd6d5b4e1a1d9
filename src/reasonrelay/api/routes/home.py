"""Browser test page for the WebSocket relay."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["home"])

HOME_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Reasoning Relay</title>
  <style>
    body { font-family: sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }
    #messages { height: 400px; overflow-y: auto; border: 1px solid #ddd; padding: 10px;
                font-family: monospace; margin-bottom: 10px; }
    .user { color: #0056b3; text-align: right; }
    .reasoning { color: #777; font-style: italic; white-space: pre-wrap; }
    .answer { white-space: pre-wrap; }
    .meta { color: #999; font-size: 12px; }
    .error { color: #b00020; }
    #status.connected { color: #155724; }
    #status.disconnected { color: #721c24; }
  </style>
</head>
<body>
  <h1>Reasoning Relay</h1>
  <div id="status" class="disconnected">Disconnected</div>
  <div id="messages"></div>
  <input id="input" size="60" placeholder="Ask something, end with /think or /no_think">
  <button id="send" disabled>Send</button>
  <script>
    const messages = document.getElementById("messages");
    const input = document.getElementById("input");
    const send = document.getElementById("send");
    const status = document.getElementById("status");
    const sessions = {};
    let ws;

    function add(cls, text) {
      const el = document.createElement("div");
      el.className = cls;
      el.textContent = text;
      messages.appendChild(el);
      messages.scrollTop = messages.scrollHeight;
      return el;
    }

    function session(id) {
      if (!sessions[id]) {
        sessions[id] = { reasoning: add("reasoning", ""), answer: null };
      }
      return sessions[id];
    }

    function connect() {
      const proto = location.protocol === "https:" ? "wss:" : "ws:";
      ws = new WebSocket(proto + "//" + location.host + "/ws?user_id=web_user");
      ws.onopen = () => { status.textContent = "Connected"; status.className = "connected"; send.disabled = false; };
      ws.onclose = () => {
        status.textContent = "Disconnected"; status.className = "disconnected"; send.disabled = true;
        setTimeout(connect, 3000);
      };
      ws.onmessage = (e) => {
        const msg = JSON.parse(e.data);
        const s = session(msg.session_id);
        switch (msg.stage) {
          case "reasoning": s.reasoning.textContent += msg.content; break;
          case "reasoning_complete": s.answer = add("answer", ""); break;
          case "answer": s.answer.textContent += msg.content; break;
          case "tool_call": case "usage": add("meta", msg.content); break;
          case "error": add("error", msg.content); break;
        }
      };
    }

    function sendMessage() {
      const text = input.value.trim();
      if (!text) return;
      add("user", text);
      ws.send(JSON.stringify({ type: "user_message", content: text }));
      input.value = "";
    }

    send.onclick = sendMessage;
    input.onkeypress = (e) => { if (e.key === "Enter") sendMessage(); };
    connect();
  </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def home() -> HTMLResponse:
    return HTMLResponse(content=HOME_HTML)
