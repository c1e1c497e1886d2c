from typing import Protocol


class DeclarationWatcherPort(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...
