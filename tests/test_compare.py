from dotage.secrets import Comparison, Freshness, Reason

from .conftest import NOW


def test_missing_plaintext(sk, remote):
    secret = remote('.env', "A=1\n")
    comparison = sk.compare(secret)
    assert comparison.freshness is Freshness.NOT_COMPARABLE
    assert comparison.reason is Reason.NOT_FOUND


def test_missing_ciphertext(sk, local):
    local('.env', "A=1\n")
    assert sk.compare(sk['.env']).reason is Reason.NOT_FOUND


def test_never_committed(sk, local, remote):
    local('.env', "A=1\n")
    secret = remote('.env', "A=1\n", committed=None)
    comparison = sk.compare(secret)
    assert comparison.freshness is Freshness.NOT_COMPARABLE
    assert comparison.reason is Reason.NOT_TRACKED


def test_equal_timestamps_favour_remote(sk, local, remote):
    local('.env', "A=1\n", modified=NOW)
    secret = remote('.env', "A=2\n", committed=NOW)
    comparison = sk.compare(secret)
    assert comparison.freshness is Freshness.REMOTE_NEWER_OR_EQUAL
    assert (comparison.local_mtime, comparison.remote_time) == (NOW, NOW)


def test_local_newer(sk, local, remote):
    local('.env', "A=1\n", modified=NOW + 1)
    secret = remote('.env', "A=2\n", committed=NOW)
    assert sk.compare(secret).freshness is Freshness.LOCAL_NEWER


def test_remote_newer(sk, local, remote):
    local('.env', "A=1\n", modified=NOW - 60)
    secret = remote('.env', "A=2\n", committed=NOW)
    assert sk.compare(secret).freshness is Freshness.REMOTE_NEWER_OR_EQUAL


def test_describe():
    assert str(Comparison(reason=Reason.NOT_TRACKED)) == 'not tracked'
    assert str(Comparison(local_mtime=2, remote_time=1)) == 'local newer'
    assert str(Comparison(local_mtime=1, remote_time=1)) == 'remote newer'
