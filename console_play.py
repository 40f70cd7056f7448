import asyncio

from planning.core.board import Stone

from gomoku.app.core.config import configure_logging, load_settings
from gomoku.app.models.enums import GameOutcome
from gomoku.app.services.game_runner import GameRunner
from gomoku.app.services.game_service import GameService, TargetUnreachableError


async def main():
    settings = load_settings()
    configure_logging(settings)

    print("=======================================")
    print("   GOMOKU: Human vs Minimax AI")
    print("=======================================")

    color = input("Play Black or White? [b/w]: ").strip().lower()
    player_color = Stone.WHITE if color.startswith("w") else Stone.BLACK

    service = GameService(settings)
    runner = GameRunner(service)
    await runner.start_game(player_color)
    game = service.game

    while not game.is_game_over():
        if runner.is_busy():
            print("\nAI is thinking...")
            result = await runner.wait_idle()
            if result is not None and result.cell is not None:
                print(f"AI plays {result.cell}")
            print("\n" + game.get_visual_board())
            continue

        try:
            user_input = input("\nYour move as 'x y' (+/- to change speed): ").strip()
            if user_input == "+":
                service.speed.faster()
            elif user_input == "-":
                service.speed.slower()
            if user_input in ("+", "-"):
                print(f"Speed: {service.speed.speed}")
                continue
            x, y = (int(v) for v in user_input.split())
            await runner.submit_human_move(x, y)
        except TargetUnreachableError:
            print("No path reaches that cell right now. Try another.")
            continue
        except ValueError:
            print("Please enter a free cell as two numbers.")
            continue

        print("\n" + game.get_visual_board())

    # --- End Game ---
    if game.outcome is GameOutcome.DRAW:
        print("\nGame Over! It's a Draw.")
    else:
        winner = Stone.BLACK if game.outcome is GameOutcome.BLACK_WIN else Stone.WHITE
        winner_name = "Human" if winner is player_color else "AI"
        print(f"\nGame Over! Winner: {winner_name}")


if __name__ == "__main__":
    asyncio.run(main())
