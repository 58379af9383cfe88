"""
Exceptions du Case Builder.

Taxonomie :
  - entrée malformée / résolution ratée → jamais levées (réparées ou ignorées)
  - PersistenceError      → échec fetch/save, l'état local est conservé
  - SaveInProgressError   → une sauvegarde est déjà en vol pour la session
  - DestructiveEditError  → réduction de colonnes qui perdrait des items
  - SessionNotFoundError  → aucune session d'édition ouverte pour ce case
"""


class CaseBuilderError(Exception):
    """Erreur de base du Case Builder."""


class PersistenceError(CaseBuilderError):
    """Le row store n'a pas pu lire ou écrire les blocs."""


class SaveInProgressError(CaseBuilderError):
    def __init__(self, case_id: str):
        super().__init__(f"Sauvegarde déjà en cours pour le case {case_id!r}")
        self.case_id = case_id


class DestructiveEditError(CaseBuilderError):
    def __init__(self, block_key: str, lost_items: int):
        super().__init__(
            f"Réduire les colonnes du bloc {block_key!r} supprimerait {lost_items} item(s) — "
            "confirmation requise"
        )
        self.block_key = block_key
        self.lost_items = lost_items


class SessionNotFoundError(CaseBuilderError):
    def __init__(self, case_id: str):
        super().__init__(f"Aucune session d'édition ouverte pour le case {case_id!r}")
        self.case_id = case_id
