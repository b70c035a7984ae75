"""
➡️ But : Définir les formats d'entrée/sortie de l'API (couche validation).

UserOut → réponse de l'API (profil), sans le hash du mot de passe.

Sépare les modèles "de stockage" (ORM) de ceux "de transfert" (I/O API).
"""

from datetime import datetime
from pydantic import BaseModel

class UserOut(BaseModel):
    id: int
    email: str
    username: str
    created_at: datetime

    model_config = {"from_attributes": True}

class AccountDeletedOut(BaseModel):
    user_id: int
    deleted: dict  # table -> nb de lignes supprimées
