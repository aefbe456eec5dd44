"""Interactive pygame front end for the demonstration program."""

from __future__ import annotations

import argparse
from typing import Sequence

from fdxsim.frontend.viewer import MAX_CLOCK_HZ, MIN_CLOCK_HZ, CPUViewer
from fdxsim.program.sample import create_demo_cpu
from fdxsim.system.computer import Computer, default_clock_hz

BASE_CAPTION = "fdxsim - fetch/decode/execute"
DEFAULT_FPS = 30


def _pygame_loop(clock_hz: float, fps: int, *, start_running: bool = False) -> None:
    import pygame  # type: ignore

    computer = Computer(create_demo_cpu, clock_hz=clock_hz)
    viewer = CPUViewer(computer)
    if start_running:
        computer.power_on()

    pygame.init()
    screen = pygame.display.set_mode(viewer.window_size())
    pygame.display.set_caption(BASE_CAPTION)
    clock = pygame.time.Clock()

    while not viewer.quit_requested:
        for event in pygame.event.get():
            viewer.handle_event(event)

        elapsed_ms = clock.tick(fps)
        computer.advance(elapsed_ms / 1000.0)

        viewer.render(screen)
        pygame.display.flip()

    pygame.quit()


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fdxsim", description="Step through a tiny CPU with interrupts.")
    parser.add_argument(
        "--hz",
        type=float,
        default=None,
        help=f"Initial clock rate in ticks per second ({MIN_CLOCK_HZ:.0f}-{MAX_CLOCK_HZ:.0f})",
    )
    parser.add_argument("--fps", type=int, default=DEFAULT_FPS, help="Window refresh rate")
    parser.add_argument("--run", action="store_true", help="Start running instead of paused")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    clock_hz = args.hz if args.hz is not None else default_clock_hz()
    if not MIN_CLOCK_HZ <= clock_hz <= MAX_CLOCK_HZ:
        parser.error(f"--hz must be between {MIN_CLOCK_HZ:.0f} and {MAX_CLOCK_HZ:.0f}")
    if args.fps <= 0:
        parser.error("--fps must be positive")

    try:
        import pygame  # type: ignore  # noqa: F401
    except ImportError:
        print("pygame is required for the interactive viewer")
        return 1

    _pygame_loop(clock_hz, args.fps, start_running=args.run)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
