from slice_auth.auth_service.auth import build_password_context, hash_password, verify_password

context = build_password_context(10000)


def test_hash_is_salted():
    first = hash_password("password123", context)
    second = hash_password("password123", context)
    assert first != second
    assert verify_password("password123", first, context)
    assert verify_password("password123", second, context)


def test_wrong_password():
    hashed = hash_password("password123", context)
    assert not verify_password("password124", hashed, context)


def test_malformed_hash_does_not_verify():
    assert not verify_password("password123", "not-a-hash", context)


def test_work_factor_is_configurable():
    assert "$10000$" in hash_password("password123", build_password_context(10000))
    assert "$29000$" in hash_password("password123")
