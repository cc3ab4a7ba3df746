from .boot import init_blobrepo
