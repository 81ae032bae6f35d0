"""Read-only inspection of live rooms and tallies.

None of these endpoints create rooms or quizzes.
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..room import Room
from ..schemas import CountsResponse, RoomSummary
from ..state import RoomStore, get_room_store

router = APIRouter(prefix="/rooms", tags=["rooms"])


def _summarise(room: Room) -> RoomSummary:
    return RoomSummary(
        room=room.room_id,
        hosts=len(room.hosts),
        players=len(room.players),
        quizzes=sorted(room.quizzes),
    )


def _require_room(store: RoomStore, room_id: str) -> Room:
    room = store.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@router.get("", response_model=List[RoomSummary])
async def list_rooms(store: RoomStore = Depends(get_room_store)):
    return [_summarise(room) for room in store]


@router.get("/{room_id}", response_model=RoomSummary)
async def get_room(room_id: str, store: RoomStore = Depends(get_room_store)):
    return _summarise(_require_room(store, room_id))


@router.get("/{room_id}/quizzes/{quiz_id}/counts", response_model=CountsResponse)
async def get_counts(room_id: str, quiz_id: str, store: RoomStore = Depends(get_room_store)):
    room = _require_room(store, room_id)
    return CountsResponse(room=room_id, quiz_id=quiz_id, counts=room.counts_snapshot(quiz_id))
