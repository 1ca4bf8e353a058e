import pytest

import claims
from models import UserProfile

BOOTSTRAP = ["financeiro@ismsaude.com"]


def _profile(db, uid, role="Medico", email=None, admin=False):
    profile = UserProfile(id=uid, email=email, name=uid, role=role, custom_claims={"admin": admin})
    db.add(profile)
    db.commit()
    return profile


def test_unauthenticated(db):
    with pytest.raises(claims.Unauthenticated):
        claims.set_admin_claim(db, None, "uid-1", True, BOOTSTRAP)
    with pytest.raises(claims.Unauthenticated):
        claims.get_user_claims(db, {"uid": None})


def test_bootstrap_email_grants_admin(db):
    _profile(db, "uid-1")
    caller = {"uid": "uid-boot", "email": "financeiro@ismsaude.com", "claims": {}}
    result = claims.set_admin_claim(db, caller, "uid-1", True, BOOTSTRAP)
    assert result["success"]
    target = db.get(UserProfile, "uid-1")
    assert target.custom_claims == {"admin": True}
    assert target.role == "ADM"
    assert target.updated_by == "uid-boot"


def test_revoke_keeps_role(db):
    _profile(db, "uid-1", role="ADM", admin=True)
    admin = claims.caller_from_profile(_profile(db, "uid-admin", role="ADM", admin=True))
    result = claims.set_admin_claim(db, admin, "uid-1", False, BOOTSTRAP)
    assert "revogadas" in result["message"]
    target = db.get(UserProfile, "uid-1")
    assert target.custom_claims == {"admin": False}
    assert target.role == "ADM"


def test_stored_admin_role_is_enough(db):
    _profile(db, "uid-1")
    _profile(db, "uid-adm", role="ADM")
    caller = {"uid": "uid-adm", "email": None, "claims": {}}
    claims.set_admin_claim(db, caller, "uid-1", True, BOOTSTRAP)
    assert db.get(UserProfile, "uid-1").custom_claims == {"admin": True}


def test_non_admin_is_refused(db):
    _profile(db, "uid-1")
    caller = claims.caller_from_profile(_profile(db, "uid-2"))
    with pytest.raises(PermissionError):
        claims.set_admin_claim(db, caller, "uid-1", True, BOOTSTRAP)


def test_target_validation(db):
    caller = {"uid": "uid-boot", "email": "financeiro@ismsaude.com", "claims": {}}
    with pytest.raises(ValueError):
        claims.set_admin_claim(db, caller, "", True, BOOTSTRAP)
    with pytest.raises(LookupError):
        claims.set_admin_claim(db, caller, "uid-missing", True, BOOTSTRAP)


def test_role_change_syncs_claims(db):
    _profile(db, "uid-1")
    profile = claims.update_profile_role(db, "uid-1", "ADM", updated_by="uid-admin")
    assert profile.custom_claims == {"admin": True}
    profile = claims.update_profile_role(db, "uid-1", "Coordenador")
    assert profile.custom_claims == {"admin": False}
    with pytest.raises(LookupError):
        claims.update_profile_role(db, "uid-missing", "ADM")


def test_sync_role_to_claims_skips_unchanged_role(db):
    profile = _profile(db, "uid-1", role="ADM", admin=False)
    assert claims.sync_role_to_claims(profile, "ADM") is False
    assert profile.custom_claims == {"admin": False}


def test_get_user_claims(db):
    _profile(db, "uid-1", admin=False)
    own = claims.get_user_claims(db, {"uid": "uid-1", "claims": {}})
    assert own == {"uid": "uid-1", "email": None, "custom_claims": {"admin": False}}
    with pytest.raises(PermissionError):
        claims.get_user_claims(db, {"uid": "uid-2", "claims": {}}, "uid-1")
    assert claims.get_user_claims(db, {"uid": "uid-2", "claims": {"admin": True}}, "uid-1")["uid"] == "uid-1"
    with pytest.raises(LookupError):
        claims.get_user_claims(db, {"uid": "uid-2", "claims": {}})


def test_initialize_first_admin(db):
    caller = {"uid": "uid-boot", "email": "financeiro@ismsaude.com", "claims": {}}
    claims.initialize_first_admin(db, caller, BOOTSTRAP, name="Financeiro")
    profile = db.get(UserProfile, "uid-boot")
    assert profile.role == "ADM"
    assert profile.is_bootstrap_admin
    assert profile.custom_claims == {"admin": True}
    assert profile.name == "Financeiro"

    with pytest.raises(PermissionError):
        claims.initialize_first_admin(db, {"uid": "uid-x", "email": "x@example.com"}, BOOTSTRAP)
