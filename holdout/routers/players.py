from fastapi import APIRouter, HTTPException

from ..dependencies import GameServerDep

router = APIRouter()


@router.get("/")
async def root():
    return {"status": "ok"}


@router.get("/players")
async def get_players(game: GameServerDep):
    """Observer view of the game. Remaining time is never exposed here."""
    return game.snapshot()


@router.get("/players/{player_id}")
async def get_player(player_id: int, game: GameServerDep):
    player = game.roster.get(player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player.status()
