from datetime import datetime, timedelta, timezone

from app.utils.date import TimeAgoLabels, format_date, format_date_short, get_time_ago

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_format_date_from_iso_string():
    assert format_date("2024-01-05T10:00:00Z") == "January 5, 2024"
    assert format_date_short("2024-01-05T10:00:00+00:00") == "Jan 5, 2024"


def test_time_ago_thresholds():
    assert get_time_ago(NOW - timedelta(seconds=30), now=NOW) == "just now"
    assert get_time_ago(NOW - timedelta(minutes=5), now=NOW) == "5m ago"
    assert get_time_ago(NOW - timedelta(hours=3), now=NOW) == "3h ago"
    assert get_time_ago(NOW - timedelta(days=2), now=NOW) == "2d ago"
    assert get_time_ago(NOW - timedelta(days=10), now=NOW) == "March 5, 2024"


def test_time_ago_custom_labels():
    labels = TimeAgoLabels(just_now="vừa xong", minutes_ago=" phút trước", hours_ago=" giờ trước", days_ago=" ngày trước")
    assert get_time_ago(NOW - timedelta(minutes=2), now=NOW, labels=labels) == "2 phút trước"
    assert get_time_ago(NOW, now=NOW, labels=labels) == "vừa xong"


def test_naive_datetimes_are_treated_as_utc():
    naive_now = datetime(2024, 3, 15, 12, 0)
    assert get_time_ago(datetime(2024, 3, 15, 11, 0), now=naive_now) == "1h ago"
