"""FastAPI-powered web UI for playing Tic-Tac-Toe against the computer."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import NO_MOVE, STRATEGIES, MoveStrategy, make_ai
from .game import BOT_MARK, PLAYER_MARK, GameStatus, TicTacToeGame

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for a running series of rounds against one computer opponent."""

    game: TicTacToeGame
    ai: MoveStrategy
    strategy: str
    player_first: bool = True
    scores: Dict[str, int] = field(
        default_factory=lambda: {"player": 0, "bot": 0, "draws": 0}
    )
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Play Tic-Tac-Toe against the computer")

DEFAULT_STRATEGY = "minimax"
AI_THINK_DELAY: float = float(os.environ.get("TICTACTOE_AI_DELAY", "0.5"))


class NewGameRequest(BaseModel):
    """Request payload for starting a new session."""

    model_config = ConfigDict(populate_by_name=True)

    strategy: str = Field(
        default=DEFAULT_STRATEGY,
        description="Computer opponent: rule-based heuristic or unbeatable minimax",
    )
    player_first: bool = Field(default=True, alias="playerFirst")

    @field_validator("strategy")
    @classmethod
    def ensure_known_strategy(cls, value: str) -> str:
        if value not in STRATEGIES:
            raise ValueError(
                f"Unsupported strategy {value!r}. "
                f"Choose one of {', '.join(STRATEGIES)}."
            )
        return value


class MoveRequest(BaseModel):
    """Request payload for placing the player's mark."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _create_session(strategy: str, player_first: bool) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    first = PLAYER_MARK if player_first else BOT_MARK
    session = GameSession(
        game=TicTacToeGame(current_player=first),
        ai=make_ai(strategy, player=BOT_MARK),
        strategy=strategy,
        player_first=player_first,
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s against %s opponent", session_id, strategy)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_result(game_id: str, session: GameSession) -> None:
    """Update the scoreboard if the last move ended the round. Caller holds the lock."""

    outcome = session.game.outcome
    if outcome.status is GameStatus.PLAYING:
        return
    if outcome.winner == PLAYER_MARK:
        session.scores["player"] += 1
    elif outcome.winner == BOT_MARK:
        session.scores["bot"] += 1
    else:
        session.scores["draws"] += 1
    logger.info(
        "Game %s round over: %s (winner=%s)",
        game_id,
        outcome.status.value,
        outcome.winner,
    )
    logger.debug("Final board for %s:\n%s", game_id, session.game.pretty())


def _bot_to_move(session: GameSession) -> bool:
    game = session.game
    return not game.finished and game.current_player == session.ai.player


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        try:
            if not _bot_to_move(session):
                return
            game = session.game
            cell_index = session.ai.select_move(game.cells)
            if cell_index == NO_MOVE:
                logger.warning("Opponent found no move in game %s", game_id)
                return
            game.play_move(cell_index)
            session.move_log.append(
                {"player": session.ai.player, "cellIndex": cell_index}
            )
            logger.debug("Game %s: %s played %d", game_id, session.ai.player, cell_index)
            _record_result(game_id, session)
        finally:
            session.ai_pending = False


def _status_message(session: GameSession) -> str:
    outcome = session.game.outcome
    if outcome.status is GameStatus.WON:
        return "You Win!" if outcome.winner == PLAYER_MARK else "Bot Wins!"
    if outcome.status is GameStatus.DRAW:
        return "It's a Draw!"
    if session.ai_pending or session.game.current_player == session.ai.player:
        return "Bot Thinking..."
    return f"Your Turn ({PLAYER_MARK})"


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        outcome = game.outcome
        state: Dict[str, object] = {
            "id": game_id,
            "strategy": session.strategy,
            "playerFirst": session.player_first,
            "cells": [c if c in (PLAYER_MARK, BOT_MARK) else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "status": outcome.status.value,
            "winner": outcome.winner,
            "drawn": outcome.status is GameStatus.DRAW,
            "winningLine": list(outcome.line) if outcome.line else None,
            "availableMoves": game.available_moves(),
            "scores": dict(session.scores),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "message": _status_message(session),
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _schedule_ai(
    game_id: str, session: GameSession, background_tasks: BackgroundTasks
) -> None:
    """Flag the bot turn as pending and queue it. Caller holds the lock."""

    session.ai_pending = True
    background_tasks.add_task(_run_ai_turn, game_id)


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: BackgroundTasks,
) -> None:
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending or game.current_player != PLAYER_MARK:
            raise HTTPException(status_code=400, detail="Bot is completing its move")

        try:
            game.play_move(cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": PLAYER_MARK, "cellIndex": cell_index})
        _record_result(game_id, session)

        if _bot_to_move(session):
            _schedule_ai(game_id, session, background_tasks)


def _start_round(
    game_id: str,
    session: GameSession,
    background_tasks: BackgroundTasks,
) -> None:
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="Bot is completing its move")
        session.game.reset(PLAYER_MARK if session.player_first else BOT_MARK)
        session.move_log.clear()
        if _bot_to_move(session):
            _schedule_ai(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request.strategy, request.player_first)
    _start_round(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    _start_round(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/strategies")
def list_strategies() -> Dict[str, object]:
    return {"strategies": list(STRATEGIES), "default": DEFAULT_STRATEGY}


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <meta name=\"description\" content=\"Tic-Tac-Toe with a computer opponent\" />
    <title>Tic-Tac-Toe | Play Against AI</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Orbitron:wght@500;700&family=Rajdhani:wght@400;600&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: dark;
        font-family: 'Rajdhani', system-ui, -apple-system, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        align-items: center;
        background: radial-gradient(circle at top, #1b2440, #0b1020 70%);
        color: #e6ecff;
      }
      main {
        width: min(420px, 100%);
        padding: 2rem 1rem;
        text-align: center;
      }
      h1 {
        font-family: 'Orbitron', sans-serif;
        letter-spacing: 0.08em;
        margin: 0 0 1.25rem;
      }
      .toolbar {
        display: flex;
        gap: 0.5rem;
        justify-content: center;
        margin-bottom: 1rem;
      }
      .scoreboard {
        display: flex;
        justify-content: space-between;
        margin-bottom: 1rem;
      }
      .score-item {
        flex: 1;
        display: flex;
        flex-direction: column;
      }
      .score-value {
        font-family: 'Orbitron', sans-serif;
        font-size: 1.6rem;
      }
      .status-message {
        min-height: 1.8rem;
        font-size: 1.25rem;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        margin-bottom: 1.25rem;
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.75rem;
        border-radius: 14px;
        border: 1px solid rgba(120, 150, 255, 0.25);
        background: rgba(255, 255, 255, 0.04);
        color: inherit;
        cursor: pointer;
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: #4fd1ff;
      }
      .cell.o {
        color: #ff6b9a;
      }
      .cell.winning {
        background: rgba(255, 215, 90, 0.25);
      }
      button,
      select {
        font-family: inherit;
        font-size: 1rem;
        padding: 0.45rem 0.9rem;
        border-radius: 999px;
        border: 1px solid rgba(120, 150, 255, 0.35);
        background: #1e2a4d;
        color: inherit;
      }
      .hidden {
        display: none;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"toolbar\">
        <select id=\"strategy\">
          <option value=\"minimax\">Unbeatable</option>
          <option value=\"heuristic\">Casual</option>
        </select>
        <label><input type=\"checkbox\" id=\"bot-first\" /> Bot starts</label>
        <button id=\"new-game\">New Game</button>
      </div>
      <div class=\"scoreboard\">
        <div class=\"score-item\"><span>You (X)</span><span class=\"score-value\" id=\"score-player\">0</span></div>
        <div class=\"score-item\"><span>Draws</span><span class=\"score-value\" id=\"score-draws\">0</span></div>
        <div class=\"score-item\"><span>Bot (O)</span><span class=\"score-value\" id=\"score-bot\">0</span></div>
      </div>
      <div class=\"status-message\" id=\"status\"></div>
      <div class=\"board\" id=\"board\"></div>
      <button id=\"play-again\" class=\"hidden\">Play Again</button>
      <p>Click any empty cell to place your X</p>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const playAgainEl = document.getElementById('play-again');
      let gameId = null;
      let gameState = null;
      let aiPollHandle = null;

      function render() {
        if (!gameState) {
          return;
        }
        statusEl.textContent = gameState.message;
        document.getElementById('score-player').textContent = gameState.scores.player;
        document.getElementById('score-draws').textContent = gameState.scores.draws;
        document.getElementById('score-bot').textContent = gameState.scores.bot;
        const winning = new Set(gameState.winningLine || []);
        const playable = new Set(gameState.availableMoves);
        const yourTurn = !gameState.aiPending && gameState.currentPlayer === 'X';
        boardEl.innerHTML = '';
        gameState.cells.forEach((cell, index) => {
          const button = document.createElement('button');
          button.className = 'cell';
          if (cell) {
            button.classList.add(cell.toLowerCase());
            button.textContent = cell === 'X' ? '\\u2715' : '\\u25CB';
          }
          if (winning.has(index)) {
            button.classList.add('winning');
          }
          button.disabled = !yourTurn || !playable.has(index);
          button.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(button);
        });
        playAgainEl.classList.toggle('hidden', gameState.status === 'playing');
      }

      function scheduleAiPoll() {
        window.clearTimeout(aiPollHandle);
        if (gameState?.aiPending) {
          aiPollHandle = window.setTimeout(pollAiState, 250);
        }
      }

      async function apply(response) {
        const payload = await response.json();
        if (!response.ok) {
          statusEl.textContent = payload.detail || 'Request failed';
          return;
        }
        gameState = payload;
        gameId = payload.id;
        render();
        scheduleAiPoll();
      }

      async function startGame() {
        const response = await fetch('/api/game', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({
            strategy: document.getElementById('strategy').value,
            playerFirst: !document.getElementById('bot-first').checked,
          }),
        });
        await apply(response);
      }

      async function pollAiState() {
        if (!gameId) {
          return;
        }
        await apply(await fetch(`/api/game/${gameId}`));
      }

      async function sendMove(cellIndex) {
        const response = await fetch(`/api/game/${gameId}/move`, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ cellIndex }),
        });
        await apply(response);
      }

      async function playAgain() {
        await apply(await fetch(`/api/game/${gameId}/reset`, { method: 'POST' }));
      }

      document.getElementById('new-game').addEventListener('click', startGame);
      playAgainEl.addEventListener('click', playAgain);
      startGame();
    </script>
  </body>
</html>
"""
