"""Pygame UI shell for Quiz Duel.

Screens live on a stack owned by App:
- Setup (topic, player names, game mode, cumulative history)
- Quiz (split-screen, two keyboard zones, per-question timer)
- Results (scores, per-question table, history)

Timing, arbitration and scoring live in the core modules; screens only forward
events and draw snapshots.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import Clock, RealClock
from .config import Settings
from .duel_core import GameMode, OutcomeRecord, Player, Question, RunSnapshot, SpeedWinner
from .errors import QuizServiceError
from .logs import setup_logging
from .persistence import (
    DEFAULT_P1_NAME,
    DEFAULT_P2_NAME,
    ScoreHistory,
    ScoreHistoryStore,
    SetupPreferences,
)
from .quiz_run import QuizRun
from .quiz_service import QuizService, build_quiz_service
from .results import MatchResult, match_result_from_outcomes

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60
DEFAULT_TOPIC = "General Knowledge"
MAX_FIELD_LEN = 40

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
P1_COLOR = (96, 165, 250)
P2_COLOR = (244, 114, 182)
CORRECT = (34, 197, 94)
WRONG = (239, 68, 68)
AMBER = (245, 158, 11)

MODE_LABELS: dict[GameMode, tuple[str, str]] = {
    GameMode.NORMAL: ("Normal", "One point per correct answer"),
    GameMode.SPEED: ("Speed", "First correct answer takes the point"),
    GameMode.ODD_ONE_OUT: ("Odd One Out", "Spot the intruder among four"),
}

_DIGIT_SCANCODES = {
    pygame.KSCAN_1: "1",
    pygame.KSCAN_2: "2",
    pygame.KSCAN_3: "3",
    pygame.KSCAN_4: "4",
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    @property
    def top(self) -> Screen | None:
        return self._screens[-1] if self._screens else None

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the root screen; it handles its own quit.
        if len(self._screens) > 1:
            self._screens.pop()

    def replace(self, screen: Screen) -> None:
        self.pop()
        self.push(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def key_symbol(event: pygame.event.Event) -> str:
    """Layout-aware key id; the number row is matched physically."""

    digit = _DIGIT_SCANCODES.get(getattr(event, "scancode", -1))
    if digit is not None:
        return digit
    ch = getattr(event, "unicode", "") or ""
    if len(ch) == 1 and ch.isprintable():
        return ch.lower()
    return pygame.key.name(event.key)


def _fit_label(font: pygame.font.Font, label: str, max_width: int) -> str:
    if max_width <= 0:
        return ""
    if font.size(label)[0] <= max_width:
        return label
    clipped = label
    while clipped and font.size(f"{clipped}...")[0] > max_width:
        clipped = clipped[:-1]
    return f"{clipped}..." if clipped else "..."


def _wrap(font: pygame.font.Font, text: str, max_width: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in str(text).split():
        candidate = word if current == "" else f"{current} {word}"
        if font.size(candidate)[0] <= max_width or current == "":
            current = candidate
        else:
            lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def _draw_frame(surface: pygame.Surface) -> pygame.Rect:
    w, h = surface.get_size()
    surface.fill(BG)
    frame = pygame.Rect(12, 12, max(200, w - 24), max(160, h - 24))
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)
    return frame


class _Row:
    TOPIC = 0
    PLAYER1 = 1
    PLAYER2 = 2
    MODE = 3
    START = 4
    RESET = 5


class SetupScreen:
    """Topic / names / mode form. Generation runs on a worker thread."""

    _labels = ("Topic", "Player 1", "Player 2", "Mode", "Start duel", "Reset history")

    def __init__(
        self,
        app: App,
        *,
        service: QuizService,
        store: ScoreHistoryStore,
        on_start: Callable[[list[Question], SetupPreferences], None],
    ) -> None:
        self._app = app
        self._service = service
        self._store = store
        self._on_start = on_start

        prefs = store.preferences()
        self._topic = ""
        self._player1 = prefs.player1
        self._player2 = prefs.player2
        self._mode = prefs.mode
        self._selected = _Row.TOPIC
        self._message = ""

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quiz-gen")
        self._pending: Future[list[Question]] | None = None
        self._pending_prefs: SetupPreferences | None = None

        self._title_font = pygame.font.Font(None, 48)
        self._item_font = pygame.font.Font(None, 32)
        self._hint_font = pygame.font.Font(None, 22)

    @property
    def loading(self) -> bool:
        return self._pending is not None

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN or self.loading:
            return
        key = int(event.key)

        if key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if key == pygame.K_UP:
            self._selected = (self._selected - 1) % len(self._labels)
            return
        if key in (pygame.K_DOWN, pygame.K_TAB):
            self._selected = (self._selected + 1) % len(self._labels)
            return

        if self._selected == _Row.MODE:
            modes = list(GameMode)
            if key == pygame.K_LEFT:
                self._mode = modes[(modes.index(self._mode) - 1) % len(modes)]
            elif key in (pygame.K_RIGHT, pygame.K_SPACE):
                self._mode = modes[(modes.index(self._mode) + 1) % len(modes)]
            elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                self._selected = _Row.START
            return

        if self._selected == _Row.START:
            if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._submit()
            return

        if self._selected == _Row.RESET:
            if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._store.reset()
                self._message = "History cleared."
            return

        # Text fields.
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._selected += 1
            return
        value = self._field_value(self._selected)
        if key == pygame.K_BACKSPACE:
            self._set_field(self._selected, value[:-1])
            return
        ch = event.unicode
        if ch and ch.isprintable() and len(value) < MAX_FIELD_LEN:
            self._set_field(self._selected, value + ch)

    def render(self, surface: pygame.Surface) -> None:
        self._poll_generation()

        frame = _draw_frame(surface)
        title = self._title_font.render("Quiz Duel", True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(frame.centerx, frame.y + 14)))

        y = frame.y + 70
        row_h = 38
        for idx, label in enumerate(self._labels):
            row = pygame.Rect(frame.x + 40, y, frame.w - 80, row_h - 6)
            selected = idx == self._selected
            pygame.draw.rect(surface, (244, 248, 255) if selected else (9, 20, 106), row)
            pygame.draw.rect(surface, (62, 84, 152), row, 1)
            color = (14, 26, 74) if selected else TEXT_MAIN

            text = label
            if idx <= _Row.PLAYER2:
                caret = "|" if selected and (pygame.time.get_ticks() // 500) % 2 == 0 else ""
                value = self._field_value(idx)
                shown = value if value or selected else self._placeholder(idx)
                text = f"{label}: {shown}{caret}"
            elif idx == _Row.MODE:
                name, desc = MODE_LABELS[self._mode]
                text = f"Mode: < {name} >  {desc}"
            elif idx == _Row.START and self.loading:
                text = "Generating questions..."

            fitted = _fit_label(self._item_font, text, row.w - 20)
            surface.blit(self._item_font.render(fitted, True, color), (row.x + 10, row.y + 4))
            y += row_h

        history = self._store.history()
        if history.games_played > 0:
            summary = (
                f"History: {history.p1_name} {history.p1_wins}W  |  ties {history.ties}  |  "
                f"{history.p2_wins}W {history.p2_name}"
            )
            surface.blit(self._hint_font.render(summary, True, TEXT_MUTED), (frame.x + 40, y + 6))

        if self._message:
            msg = self._hint_font.render(self._message, True, AMBER)
            surface.blit(msg, (frame.x + 40, y + 30))

        footer = "Up/Down: field  |  Left/Right: mode  |  Enter: confirm  |  Esc: quit"
        foot = self._hint_font.render(footer, True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))

    def _submit(self) -> None:
        topic = self._topic.strip() or DEFAULT_TOPIC
        prefs = SetupPreferences(
            player1=self._player1.strip() or DEFAULT_P1_NAME,
            player2=self._player2.strip() or DEFAULT_P2_NAME,
            mode=self._mode,
        )
        self._store.save_preferences(prefs)
        self._message = ""
        self._pending_prefs = prefs
        self._pending = self._executor.submit(self._service.generate, topic, prefs.mode)

    def _poll_generation(self) -> None:
        if self._pending is None or not self._pending.done():
            return
        future, prefs = self._pending, self._pending_prefs
        self._pending = None
        self._pending_prefs = None
        assert prefs is not None

        try:
            questions = future.result()
        except QuizServiceError as exc:
            self._message = exc.message
            return
        except Exception:
            logger.exception("Unexpected failure while generating questions")
            self._message = "Could not generate questions."
            return
        if not questions:
            self._message = "No questions were generated."
            return
        try:
            self._on_start(questions, prefs)
        except ValueError:
            logger.warning("Generated quiz had no playable questions")
            self._message = "The generated quiz had no playable questions."

    def _field_value(self, row: int) -> str:
        if row == _Row.TOPIC:
            return self._topic
        if row == _Row.PLAYER1:
            return self._player1
        return self._player2

    def _set_field(self, row: int, value: str) -> None:
        if row == _Row.TOPIC:
            self._topic = value
        elif row == _Row.PLAYER1:
            self._player1 = value
        else:
            self._player2 = value

    @staticmethod
    def _placeholder(row: int) -> str:
        if row == _Row.TOPIC:
            return DEFAULT_TOPIC
        return DEFAULT_P1_NAME if row == _Row.PLAYER1 else DEFAULT_P2_NAME


@dataclass(frozen=True, slots=True)
class _PanelStyle:
    color: tuple[int, int, int]
    keys: tuple[str, ...]


class QuizScreen:
    """Split-screen view over a QuizRun. Esc abandons the run."""

    def __init__(
        self,
        app: App,
        *,
        questions: Sequence[Question],
        mode: GameMode,
        player1: str,
        player2: str,
        clock: Clock,
        on_complete: Callable[[list[OutcomeRecord]], None],
        on_quit: Callable[[], None],
    ) -> None:
        self._app = app
        self._on_complete = on_complete
        self._on_quit = on_quit
        self._finished: list[OutcomeRecord] | None = None
        self._quit_requested = False
        self._delivered = False

        self._run = QuizRun(
            questions=questions,
            mode=mode,
            clock=clock,
            player1=player1,
            player2=player2,
            on_complete=self._completed,
            on_quit=self._quitted,
        )
        zones = self._run.zones
        self._styles = {
            Player.P1: _PanelStyle(P1_COLOR, zones.labels(Player.P1)),
            Player.P2: _PanelStyle(P2_COLOR, zones.labels(Player.P2)),
        }

        self._big_font = pygame.font.Font(None, 40)
        self._mid_font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 24)

        self._run.start()

    @property
    def run(self) -> QuizRun:
        return self._run

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_ESCAPE:
            self._run.quit()
        else:
            self._run.press(key_symbol(event))
        self._deliver()

    def render(self, surface: pygame.Surface) -> None:
        self._run.update()
        if self._deliver():
            return
        snap = self._run.snapshot()

        w, h = surface.get_size()
        surface.fill(BG)

        # Top bar: progress, mode badge, timer.
        bar = pygame.Rect(0, 0, w, 56)
        pygame.draw.rect(surface, PANEL_BG, bar)
        label = f"QUESTION {snap.question_index + 1} / {snap.question_count}"
        if snap.mode is not GameMode.NORMAL:
            label += f"   {MODE_LABELS[snap.mode][0].upper()}"
        surface.blit(self._small_font.render(label, True, TEXT_MUTED), (20, 10))
        surface.blit(self._small_font.render("Esc: quit", True, TEXT_MUTED), (20, 32))

        timer_color = TEXT_MAIN if snap.time_remaining_s > 10 else AMBER if snap.time_remaining_s > 5 else WRONG
        timer = self._big_font.render(f"{snap.time_remaining_s}s", True, timer_color)
        surface.blit(timer, timer.get_rect(topright=(w - 20, 10)))

        progress_w = int(w * snap.question_index / max(1, snap.question_count))
        pygame.draw.rect(surface, (62, 84, 152), (0, 52, w, 4))
        pygame.draw.rect(surface, P1_COLOR, (0, 52, progress_w, 4))
        timer_w = int(w * snap.time_remaining_s / max(1, snap.timer_s))
        pygame.draw.rect(surface, timer_color, (0, 56, timer_w, 3))

        # Question.
        y = 72
        for line in _wrap(self._mid_font, self._question_caption(snap), w - 80)[:3]:
            text = self._mid_font.render(line, True, TEXT_MAIN)
            surface.blit(text, text.get_rect(midtop=(w // 2, y)))
            y += 28

        panels_top = y + 12
        half = w // 2
        self._render_panel(surface, pygame.Rect(0, panels_top, half - 1, h - panels_top), snap, Player.P1)
        pygame.draw.line(surface, BORDER, (half, panels_top), (half, h), 2)
        self._render_panel(surface, pygame.Rect(half + 1, panels_top, half - 1, h - panels_top), snap, Player.P2)

    def _question_caption(self, snap: RunSnapshot) -> str:
        if snap.mode is GameMode.ODD_ONE_OUT:
            if not snap.revealed:
                return "Find the odd one out!"
            return f"The common theme was: {snap.question_text}"
        return snap.question_text

    def _render_panel(self, surface: pygame.Surface, rect: pygame.Rect, snap: RunSnapshot, player: Player) -> None:
        style = self._styles[player]
        name = snap.player1 if player is Player.P1 else snap.player2
        choice = snap.p1_choice if player is Player.P1 else snap.p2_choice
        other = snap.p2_choice if player is Player.P1 else snap.p1_choice

        header = self._mid_font.render(_fit_label(self._mid_font, name, rect.w - 160), True, style.color)
        surface.blit(header, (rect.x + 20, rect.y + 4))

        status = ""
        status_color = TEXT_MUTED
        if snap.mode is GameMode.SPEED and choice is not None:
            if snap.first_responder is player:
                status, status_color = "1st!", AMBER
            elif other is not None:
                status = "2nd"
        elif choice is not None and not snap.revealed:
            status = "Waiting..." if other is None else "Answered"
            status_color = style.color if other is None else CORRECT
        if status:
            badge = self._small_font.render(status, True, status_color)
            surface.blit(badge, badge.get_rect(topright=(rect.right - 20, rect.y + 8)))

        n = len(snap.options)
        top = rect.y + 40
        gap = 10
        row_h = max(30, min(56, (rect.h - 50 - gap * n) // max(1, n)))
        for i, option in enumerate(snap.options):
            row = pygame.Rect(rect.x + 20, top + i * (row_h + gap), rect.w - 40, row_h)
            fill = (9, 20, 106)
            edge = style.color
            text_color = TEXT_MAIN
            suffix = ""
            if snap.revealed:
                if i == snap.answer_index:
                    fill, edge, text_color, suffix = (14, 60, 40), CORRECT, (134, 239, 172), "  (answer)"
                elif i == choice:
                    fill, edge, text_color, suffix = (70, 20, 30), WRONG, (252, 165, 165), "  (wrong)"
                else:
                    text_color = TEXT_MUTED
            elif choice is not None:
                # Locked in: dim every option equally so the opponent learns nothing.
                text_color = TEXT_MUTED
            pygame.draw.rect(surface, fill, row)
            pygame.draw.rect(surface, edge, row, 2)

            key = style.keys[i].upper() if i < len(style.keys) else chr(65 + i)
            surface.blit(self._small_font.render(key, True, TEXT_MUTED), (row.x + 10, row.y + (row_h - 16) // 2))
            label = _fit_label(self._small_font, f"{option}{suffix}", row.w - 60)
            surface.blit(self._small_font.render(label, True, text_color), (row.x + 44, row.y + (row_h - 16) // 2))

    def _completed(self, outcomes: list[OutcomeRecord]) -> None:
        self._finished = outcomes

    def _quitted(self) -> None:
        self._quit_requested = True

    def _deliver(self) -> bool:
        if self._delivered:
            return True
        if self._finished is not None:
            self._delivered = True
            self._on_complete(self._finished)
            return True
        if self._quit_requested:
            self._delivered = True
            self._on_quit()
            return True
        return False


class ResultsScreen:
    def __init__(
        self,
        app: App,
        *,
        result: MatchResult,
        player1: str,
        player2: str,
        history: ScoreHistory,
    ) -> None:
        self._app = app
        self._result = result
        self._player1 = player1
        self._player2 = player2
        self._history = history
        self._title_font = pygame.font.Font(None, 44)
        self._mid_font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_ESCAPE, pygame.K_SPACE):
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        frame = _draw_frame(surface)
        r = self._result

        if r.winner is Player.P1:
            headline, color = f"{self._player1} wins the duel!", P1_COLOR
        elif r.winner is Player.P2:
            headline, color = f"{self._player2} wins the duel!", P2_COLOR
        else:
            headline, color = "It's a tie!", AMBER
        title = self._title_font.render(headline, True, color)
        surface.blit(title, title.get_rect(midtop=(frame.centerx, frame.y + 14)))

        scoring = "speed points" if r.mode is GameMode.SPEED else "correct answers"
        score_line = (
            f"{self._player1} {r.p1_score} - {r.p2_score} {self._player2}"
            f"   ({r.question_count} questions, {scoring})"
        )
        line = self._mid_font.render(score_line, True, TEXT_MAIN)
        surface.blit(line, line.get_rect(midtop=(frame.centerx, frame.y + 56)))

        h = self._history
        cumulative = f"All games: {h.p1_name} {h.p1_wins}W  |  ties {h.ties}  |  {h.p2_wins}W {h.p2_name}"
        surface.blit(self._small_font.render(cumulative, True, TEXT_MUTED), (frame.x + 30, frame.y + 92))

        y = frame.y + 120
        col_q = frame.x + 30
        col_p1 = frame.right - 260
        col_p2 = frame.right - 140
        surface.blit(self._small_font.render("Question", True, TEXT_MUTED), (col_q, y))
        surface.blit(self._small_font.render(_fit_label(self._small_font, self._player1, 110), True, P1_COLOR), (col_p1, y))
        surface.blit(self._small_font.render(_fit_label(self._small_font, self._player2, 110), True, P2_COLOR), (col_p2, y))
        y += 22
        for i, outcome in enumerate(r.outcomes):
            if y > frame.bottom - 40:
                break
            text = _fit_label(self._small_font, f"{i + 1}. {outcome.question_text}", col_p1 - col_q - 10)
            surface.blit(self._small_font.render(text, True, TEXT_MAIN), (col_q, y))
            surface.blit(self._mark(outcome, Player.P1), (col_p1, y))
            surface.blit(self._mark(outcome, Player.P2), (col_p2, y))
            y += 20

        foot = self._small_font.render("Enter: play again", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))

    def _mark(self, outcome: OutcomeRecord, player: Player) -> pygame.Surface:
        choice = outcome.p1_choice if player is Player.P1 else outcome.p2_choice
        correct = outcome.p1_correct if player is Player.P1 else outcome.p2_correct
        if choice is None:
            return self._small_font.render("-", True, TEXT_MUTED)
        mark = "OK" if correct else "X"
        if self._result.mode is GameMode.SPEED and outcome.speed_winner is SpeedWinner(player.value):
            mark += " +1"
        return self._small_font.render(mark, True, CORRECT if correct else WRONG)


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    service: QuizService | None = None,
    store: ScoreHistoryStore | None = None,
    clock: Clock | None = None,
) -> int:
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    pygame.init()
    pygame.display.set_caption("Quiz Duel")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)
    font = pygame.font.Font(None, 36)
    frame_clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    game_clock = clock or RealClock()
    quiz_service = service or build_quiz_service(settings)
    history_store = store or ScoreHistoryStore(settings.history_path)

    def start_quiz(questions: list[Question], prefs: SetupPreferences) -> None:
        def completed(outcomes: list[OutcomeRecord]) -> None:
            result = match_result_from_outcomes(outcomes, mode=prefs.mode)
            history = history_store.record(result, p1_name=prefs.player1, p2_name=prefs.player2)
            app.replace(
                ResultsScreen(
                    app,
                    result=result,
                    player1=prefs.player1,
                    player2=prefs.player2,
                    history=history,
                )
            )

        app.push(
            QuizScreen(
                app,
                questions=questions,
                mode=prefs.mode,
                player1=prefs.player1,
                player2=prefs.player2,
                clock=game_clock,
                on_complete=completed,
                on_quit=app.pop,
            )
        )

    setup = SetupScreen(app, service=quiz_service, store=history_store, on_start=start_quiz)
    app.push(setup)

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        setup.close()
        pygame.quit()

    return 0
