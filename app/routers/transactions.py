import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import get_current_user_id
from app.db.store import StoreConflict, StoreUnavailable, TransactionStore, get_transaction_store
from app.models.transaction import Transaction, TransactionCreate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
def list_transactions(
    user_id: str = Depends(get_current_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> Dict[str, List[Transaction]]:
    """All of the caller's transactions, newest date first."""
    try:
        transactions = store.get(user_id)
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return {"transactions": transactions}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    store: TransactionStore = Depends(get_transaction_store),
) -> Dict[str, Transaction]:
    transaction = Transaction.from_create(payload)
    try:
        store.append(user_id, transaction)
    except StoreConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return {"transaction": transaction}
