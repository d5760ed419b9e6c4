"""Tests for the metrics data model (enums, records, dictionary output)."""

from studiostats.metrics.schema import (
    SOURCE_ORDER,
    STUDIO_TEACHER,
    AuditRecord,
    ClientDetail,
    ClientSource,
    GroupMetrics,
    ProcessingResult,
    empty_source_counts,
)


class TestClientSource:
    """Test ClientSource enum."""

    def test_enum_values(self):
        """Test all enum values are defined correctly."""
        assert ClientSource.TRIAL == "trial"
        assert ClientSource.REFERRAL == "referral"
        assert ClientSource.HOSTED == "hosted"
        assert ClientSource.INFLUENCER == "influencer"
        assert ClientSource.OTHER == "other"

    def test_source_order_labels(self):
        """Test the fixed order and labels of the source series."""
        assert [s.label for s in SOURCE_ORDER] == [
            "Trials",
            "Referrals",
            "Hosted",
            "Influencer",
            "Others",
        ]

    def test_empty_source_counts(self):
        """Test the empty series has five zero entries."""
        counts = empty_source_counts()
        assert len(counts) == 5
        assert all(c.count == 0 for c in counts)


class TestClientDetail:
    """Test ClientDetail."""

    def test_to_dict_omits_unset_fields(self):
        """Test that optional fields are only present when set."""
        detail = ClientDetail(email="a@x.com", name="Ada", date="2024-01-05")
        assert detail.to_dict() == {"email": "a@x.com", "name": "Ada", "date": "2024-01-05"}

    def test_to_dict_camel_case(self):
        """Test camelCase keys for optional fields."""
        detail = ClientDetail(
            email="a@x.com",
            name="Ada",
            date="2024-01-12",
            visit_count=2,
            value=150.0,
            membership_type="Monthly Unlimited",
        )
        data = detail.to_dict()
        assert data["visitCount"] == 2
        assert data["value"] == 150.0
        assert data["membershipType"] == "Monthly Unlimited"


class TestGroupMetrics:
    """Test GroupMetrics."""

    def test_defaults(self):
        """Test that a fresh record has zero counts and a five-entry series."""
        metrics = GroupMetrics(teacher_name="Jane", location="Downtown", period="Jan 24")
        assert metrics.new_clients == 0
        assert metrics.revenue_by_week == []
        assert len(metrics.clients_by_source) == 5
        assert not metrics.is_studio

    def test_studio_flag(self):
        """Test that the studio sentinel marks studio records."""
        metrics = GroupMetrics(teacher_name=STUDIO_TEACHER, location="Downtown", period="All Periods")
        assert metrics.is_studio

    def test_to_dict_keys(self):
        """Test the dictionary contract consumed by the dashboard."""
        data = GroupMetrics(teacher_name="Jane", location="Downtown", period="Jan 24").to_dict()
        for key in (
            "teacherName",
            "newClients",
            "influencerSignups",
            "retentionRate",
            "averageRevenuePerClient",
            "trialToMembershipConversion",
            "revenueByWeek",
            "clientsBySource",
        ):
            assert key in data


class TestProcessingResult:
    """Test ProcessingResult."""

    def test_split_teacher_and_studio(self):
        """Test teacher_data and studio_data views."""
        result = ProcessingResult(
            processed_data=[
                GroupMetrics(teacher_name="Jane", location="Downtown", period="Jan 24"),
                GroupMetrics(teacher_name=STUDIO_TEACHER, location="Downtown", period="All Periods"),
            ]
        )
        assert [m.teacher_name for m in result.teacher_data] == ["Jane"]
        assert [m.teacher_name for m in result.studio_data] == [STUDIO_TEACHER]

    def test_audit_record_to_dict(self):
        """Test that audit records merge the raw row with the reason."""
        record = AuditRecord(record={"Email": "a@x.com"}, reason="First time visitor")
        assert record.to_dict() == {"Email": "a@x.com", "reason": "First time visitor"}

    def test_to_dict_empty(self):
        """Test that an empty result serializes to empty collections."""
        data = ProcessingResult().to_dict()
        assert data["processedData"] == []
        assert data["excludedRecords"] == []
