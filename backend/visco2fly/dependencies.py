from visco2fly.services.search_orchestrator import SearchOrchestrator, search_orchestrator


def get_orchestrator() -> SearchOrchestrator:
    return search_orchestrator
