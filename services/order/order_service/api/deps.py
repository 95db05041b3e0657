from fastapi import Request
from order_service.db.session import Store

def get_store(request: Request) -> Store:
    return request.app.state.store
