"""Driver terminal endpoints.

Operator-facing failures (missing location, unknown destination, store outage)
are reported inside the snapshot's ``message``; only actions that make no sense
in the current state are rejected with 409.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...errors import InvalidTransition, TerminalBusy
from ...schemas.terminal import SelectDestinationRequest, TerminalSnapshot
from ...services.terminal import DriverTerminal, TerminalRegistry
from ..dependencies import get_terminals

router = APIRouter(prefix="/terminal", tags=["terminal"])


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _existing_terminal(terminals: TerminalRegistry, bus_id: str) -> DriverTerminal:
    # Only selecting a destination opens a terminal for a bus.
    terminal = terminals.find(bus_id)
    if terminal is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Terminal {bus_id} is idle; select a destination first",
        )
    return terminal


@router.get("/{bus_id}", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def terminal_state(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = terminals.find(bus_id)
    if terminal is None:
        return TerminalSnapshot.idle(bus_id)
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/select", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def select_destination(
    bus_id: str,
    payload: SelectDestinationRequest,
    terminals: TerminalRegistry = Depends(get_terminals),
) -> TerminalSnapshot:
    terminal = terminals.get(bus_id, driver_id=payload.driver_id)
    try:
        await terminal.select_destination(payload.destination_id, payload.to_device_fix())
    except (InvalidTransition, TerminalBusy) as exc:
        raise _conflict(exc) from exc
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/retry", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def retry_quote(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = _existing_terminal(terminals, bus_id)
    try:
        await terminal.retry_quote()
    except (InvalidTransition, TerminalBusy) as exc:
        raise _conflict(exc) from exc
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/confirm", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def confirm(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = _existing_terminal(terminals, bus_id)
    try:
        await terminal.confirm()
    except (InvalidTransition, TerminalBusy) as exc:
        raise _conflict(exc) from exc
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/cancel", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def cancel(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = _existing_terminal(terminals, bus_id)
    try:
        terminal.cancel()
    except (InvalidTransition, TerminalBusy) as exc:
        raise _conflict(exc) from exc
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/reset", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def reset(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = _existing_terminal(terminals, bus_id)
    try:
        terminal.reset()
    except (InvalidTransition, TerminalBusy) as exc:
        raise _conflict(exc) from exc
    return TerminalSnapshot.from_terminal(terminal)


@router.post("/{bus_id}/dismiss-message", response_model=TerminalSnapshot, status_code=status.HTTP_200_OK)
async def dismiss_message(bus_id: str, terminals: TerminalRegistry = Depends(get_terminals)) -> TerminalSnapshot:
    terminal = terminals.find(bus_id)
    if terminal is None:
        return TerminalSnapshot.idle(bus_id)
    terminal.dismiss_message()
    return TerminalSnapshot.from_terminal(terminal)
