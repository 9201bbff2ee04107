# core/request_context.py

from typing import Dict, Optional, Set

from supabase import Client

from core.access_control import resolve_effective_permissions
from core.supabase_client import require_client
from models.access import Identity
from models.enums import AssignmentType


class RequestContext:
    """
    Per-request state threaded through the authorization pipeline.

    Holds the verified identity, the Supabase client used for every read
    in this request, the effective permission set once it has been
    computed, and the collapsed assignment type per building already
    looked up. A new context is built for every request, so role,
    override or assignment changes take effect on the next request.
    """

    def __init__(self, identity: Optional[Identity], client: Optional[Client] = None):
        self.identity = identity
        self._client = client
        self._effective_permissions: Optional[Set[str]] = None
        # building_id -> collapsed assignment type (None = no assignment)
        self.assignments: Dict[str, Optional[AssignmentType]] = {}

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.user_id if self.identity is not None else None

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = require_client()
        return self._client

    @property
    def effective_permissions(self) -> Set[str]:
        if self._effective_permissions is None:
            if not self.user_id:
                self._effective_permissions = set()
            else:
                self._effective_permissions = resolve_effective_permissions(
                    self.user_id, self.client
                )
        return self._effective_permissions

    @property
    def permissions_resolved(self) -> bool:
        return self._effective_permissions is not None
