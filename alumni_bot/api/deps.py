# Role: Process-wide singletons shared by the routers (one store, one query log, one turn orchestrator).

from alumni_bot.core.query_log import QueryLog
from alumni_bot.core.session_store import SessionStore
from alumni_bot.core.turn_controller import TurnController

session_store = SessionStore()
query_log = QueryLog()
turn_controller = TurnController(session_store=session_store, query_log=query_log)
