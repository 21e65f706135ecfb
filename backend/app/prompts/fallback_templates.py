"""
Deterministic placeholder output for when no generation provider is usable.

The selector matches simple keywords in the prompt; the first rule that
matches wins, so a prompt mentioning both "website" and "contract" gets the
HTML skeleton.
"""
from typing import Sequence, Tuple

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>My Website</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 0; color: #1a1a2e; }
    header { padding: 4rem 2rem; text-align: center; background: #667eea; color: #fff; }
    main { max-width: 960px; margin: 0 auto; padding: 2rem; }
  </style>
</head>
<body>
  <header>
    <h1>Welcome</h1>
    <p>Your site is ready to customize.</p>
  </header>
  <main>
    <section>
      <h2>About</h2>
      <p>Describe your project here.</p>
    </section>
  </main>
</body>
</html>
"""

SOLIDITY_TEMPLATE = """// SPDX-License-Identifier: MIT
pragma solidity ^0.8.20;

contract SimpleStorage {
    uint256 private value;
    address public owner;

    event ValueChanged(uint256 newValue);

    constructor() {
        owner = msg.sender;
    }

    function set(uint256 newValue) external {
        require(msg.sender == owner, "Only owner");
        value = newValue;
        emit ValueChanged(newValue);
    }

    function get() external view returns (uint256) {
        return value;
    }
}
"""

GAME_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Canvas Game</title>
</head>
<body>
  <canvas id="game" width="800" height="600" style="border: 2px solid #333"></canvas>
  <script>
    const ctx = document.getElementById('game').getContext('2d');
    const player = { x: 100, y: 500, size: 40, speed: 5 };
    const keys = {};
    document.addEventListener('keydown', e => keys[e.key] = true);
    document.addEventListener('keyup', e => keys[e.key] = false);

    function update() {
      if (keys['ArrowLeft']) player.x -= player.speed;
      if (keys['ArrowRight']) player.x += player.speed;
    }

    function draw() {
      ctx.clearRect(0, 0, 800, 600);
      ctx.fillStyle = '#667eea';
      ctx.fillRect(player.x, player.y, player.size, player.size);
    }

    function gameLoop() {
      update();
      draw();
      requestAnimationFrame(gameLoop);
    }
    gameLoop();
  </script>
</body>
</html>
"""

BOT_TEMPLATE = """// Minimal chat bot
const responses = {
  hello: 'Hi there! How can I help you today?',
  help: 'Ask me anything about your project.',
};

function reply(message) {
  const text = message.toLowerCase();
  for (const [keyword, answer] of Object.entries(responses)) {
    if (text.includes(keyword)) return answer;
  }
  return "Sorry, I don't understand that yet.";
}

module.exports = { reply };
"""

CODE_TEMPLATE = """// Generated starter code
function main() {
  console.log('Hello from VirtuBuild!');
}

main();
"""

# (keywords, template), checked in order
FALLBACK_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("html", "website", "landing page", "portfolio", "webpage"), HTML_TEMPLATE),
    (("contract", "solidity"), SOLIDITY_TEMPLATE),
    (("game",), GAME_TEMPLATE),
    (("bot",), BOT_TEMPLATE),
)


def select_fallback_template(prompt: str) -> str:
    text = (prompt or "").lower()
    for keywords, template in FALLBACK_RULES:
        if any(keyword in text for keyword in keywords):
            return template
    return CODE_TEMPLATE
