from lidarkit.conflict import Conflict, ConflictDetector


def test_first_broadcast_is_recorded():
    detector = ConflictDetector()
    assert detector.observe("192.168.1.10", "0TFDG3B006H2Z11") is None
    assert detector.codes == {"192.168.1.10": "0TFDG3B006H2Z11"}


def test_repeated_broadcast_is_not_a_conflict():
    detector = ConflictDetector()
    detector.observe("192.168.1.10", "0TFDG3B006H2Z11")
    assert detector.observe("192.168.1.10", "0TFDG3B006H2Z11") is None


def test_different_code_on_same_ip_is_reported():
    detector = ConflictDetector()
    detector.observe("192.168.1.10", "0TFDG3B006H2Z11")
    conflict = detector.observe("192.168.1.10", "0TFDG3B006H2Z22")
    assert conflict == Conflict("192.168.1.10", "0TFDG3B006H2Z11", "0TFDG3B006H2Z22")
    assert detector.codes["192.168.1.10"] == "0TFDG3B006H2Z11"


def test_conflicts_keep_comparing_with_first_code():
    detector = ConflictDetector()
    detector.observe("10.0.0.5", "AAAAAAAAAAAAAA1")
    detector.observe("10.0.0.5", "AAAAAAAAAAAAAA2")
    conflict = detector.observe("10.0.0.5", "AAAAAAAAAAAAAA3")
    assert conflict.existing_code == "AAAAAAAAAAAAAA1"
    assert conflict.new_code == "AAAAAAAAAAAAAA3"


def test_distinct_ips_do_not_conflict():
    detector = ConflictDetector()
    assert detector.observe("10.0.0.5", "AAAAAAAAAAAAAA1") is None
    assert detector.observe("10.0.0.6", "AAAAAAAAAAAAAA2") is None
    assert len(detector.codes) == 2


def test_conflict_message_names_both_codes_and_ip():
    message = str(Conflict("10.0.0.5", "AAAAAAAAAAAAAA1", "AAAAAAAAAAAAAA2"))
    assert "AAAAAAAAAAAAAA1" in message
    assert "AAAAAAAAAAAAAA2" in message
    assert "10.0.0.5" in message