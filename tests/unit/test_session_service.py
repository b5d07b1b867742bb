"""
Session tracking tests against moto DynamoDB with a hand-driven clock.

Run with: pytest tests/unit/test_session_service.py -v
"""

import pytest


@pytest.fixture
def messenger_customer(customer_service):
    return customer_service.create_messenger_customer({"email": "v@example.com"}, {})


class TestUpdateSession:
    """Heartbeat handling and the cooldown window."""

    def test_heartbeat_inside_cooldown_only_refreshes_last_seen(
        self, session_service, messenger_customer, clock
    ):
        clock.advance(seconds=6)

        customer = session_service.update_session(messenger_customer.id, "/pricing")

        assert customer.messenger_data.session_count == 1
        assert customer.url_visits == {}
        assert customer.messenger_data.last_seen_at == clock.now
        assert customer.messenger_data.is_active is True

    def test_heartbeat_after_cooldown_counts_session_and_visit(
        self, session_service, messenger_customer, clock
    ):
        clock.advance(seconds=7)

        customer = session_service.update_session(messenger_customer.id, "/pricing")

        assert customer.messenger_data.session_count == 2
        assert customer.url_visits == {"/pricing": 1}
        assert customer.messenger_data.last_seen_at == clock.now

    def test_boundary_is_exclusive(self, session_service, messenger_customer, clock):
        clock.advance(milliseconds=6000)
        at_threshold = session_service.update_session(messenger_customer.id, "/a")

        clock.advance(milliseconds=6001)
        past_threshold = session_service.update_session(messenger_customer.id, "/a")

        assert at_threshold.messenger_data.session_count == 1
        assert past_threshold.messenger_data.session_count == 2

    def test_visits_increment_per_url(self, session_service, messenger_customer, clock):
        for url in ("/a", "/b", "/a"):
            clock.advance(seconds=10)
            customer = session_service.update_session(messenger_customer.id, url)

        assert customer.url_visits == {"/a": 2, "/b": 1}
        assert customer.messenger_data.session_count == 4

    def test_session_count_never_decreases(self, session_service, messenger_customer, clock):
        counts = []
        for seconds in (1, 8, 2, 30, 3, 3, 7):
            clock.advance(seconds=seconds)
            customer = session_service.update_session(messenger_customer.id, "/")
            counts.append(customer.messenger_data.session_count)

        assert counts == sorted(counts)
        assert counts[-1] == 4

    def test_blank_url_counts_session_without_visit(
        self, session_service, messenger_customer, clock
    ):
        clock.advance(seconds=10)

        customer = session_service.update_session(messenger_customer.id, "")

        assert customer.messenger_data.session_count == 2
        assert customer.messenger_data.last_seen_at == clock.now
        assert customer.url_visits == {}

    def test_customer_without_messenger_data_starts_session(
        self, session_service, customer_service
    ):
        plain = customer_service.create_customer({"email": "p@example.com"})

        customer = session_service.update_session(plain.id, "/home")

        assert customer.messenger_data.session_count == 1
        assert customer.url_visits == {"/home": 1}

    def test_unknown_customer_raises(self, session_service):
        from utils.error_handling import NotFoundError

        with pytest.raises(NotFoundError):
            session_service.update_session("missing", "/")

    def test_stale_read_does_not_double_count(
        self, session_service, customers_repo, messenger_customer, clock, monkeypatch
    ):
        stale = customers_repo.get(messenger_customer.id)
        clock.advance(seconds=7)
        # A concurrent heartbeat lands first and counts the session.
        session_service.update_session(messenger_customer.id, "/a")

        real_get = customers_repo.get
        served = []

        def get_stale_once(key):
            if not served:
                served.append(key)
                return stale
            return real_get(key)

        monkeypatch.setattr(customers_repo, "get", get_stale_once)

        customer = session_service.update_session(messenger_customer.id, "/a")

        assert customer.messenger_data.session_count == 2
        assert customer.url_visits == {"/a": 1}


class TestPresence:
    """Active/inactive flags."""

    def test_mark_inactive_sets_last_seen(self, session_service, messenger_customer, clock):
        clock.advance(minutes=5)

        customer = session_service.mark_inactive(messenger_customer.id)

        assert customer.messenger_data.is_active is False
        assert customer.messenger_data.last_seen_at == clock.now

    def test_mark_active_keeps_last_seen(self, session_service, messenger_customer, clock):
        session_service.mark_inactive(messenger_customer.id)
        last_seen = clock.now
        clock.advance(minutes=5)

        customer = session_service.mark_active(messenger_customer.id)

        assert customer.messenger_data.is_active is True
        assert customer.messenger_data.last_seen_at == last_seen

    def test_mark_unknown_customer_raises(self, session_service):
        from utils.error_handling import NotFoundError

        with pytest.raises(NotFoundError):
            session_service.mark_active("missing")


class TestLocation:
    """Location overwrite."""

    def test_location_is_replaced_wholesale(self, session_service, messenger_customer):
        session_service.update_location(
            messenger_customer.id, {"city": "Ulaanbaatar", "hostname": "shop.example.com"}
        )

        customer = session_service.update_location(messenger_customer.id, {"country": "Mongolia"})

        assert customer.location.country == "Mongolia"
        assert customer.location.city is None
        assert customer.location.hostname is None


class TestVisitorContactInfo:
    """saveCustomerGetNotified behaviour."""

    def test_email_leaves_phone_untouched(self, session_service, messenger_customer):
        session_service.save_visitor_contact_info(messenger_customer.id, "phone", "99119911")

        customer = session_service.save_visitor_contact_info(
            messenger_customer.id, "email", "x@y.com"
        )

        assert customer.visitor_contact_info.email == "x@y.com"
        assert customer.visitor_contact_info.phone == "99119911"

    def test_unknown_type_writes_nothing(self, session_service, messenger_customer, customers_repo):
        before = customers_repo.get(messenger_customer.id)

        customer = session_service.save_visitor_contact_info(messenger_customer.id, "fax", "123")

        assert customer.visitor_contact_info.email is None
        assert customer.visitor_contact_info.phone is None
        assert customers_repo.get(messenger_customer.id) == before

    def test_unknown_customer_raises(self, session_service):
        from utils.error_handling import NotFoundError

        with pytest.raises(NotFoundError):
            session_service.save_visitor_contact_info("missing", "email", "x@y.com")
