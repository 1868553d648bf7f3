from tests.test_api.conftest import add_book


class TestStatsRoute:
    def test_summary_and_filters(self, client, auth):
        add_book(client, auth, "A", authors=["Le Guin"], tags=["SF"], finished_month="2023-01", release_year=1969)
        add_book(client, auth, "B", authors=["Le Guin"], tags=["SF", "Classic"], finished_month="2024-03")
        add_book(client, auth, "C", authors=["Austen"], tags=["Classic"])

        stats = client.get("/stats", headers=auth).json()
        assert stats["totalBooks"] == 3
        assert stats["finishedCount"] == 2
        assert stats["years"] == ["2023", "2024"]
        assert stats["mostUsedTag"] == {"label": "SF", "count": 2}
        assert stats["decades"] == [{"label": "1960s", "count": 1}]
        assert len(stats["timeline"]) == 15

        filtered = client.get("/stats", params={"year": "2024", "tag": "Classic"}, headers=auth).json()
        assert filtered["viewCount"] == 1
        assert filtered["coOccurringTags"] == [{"label": "SF", "count": 1}]
        assert filtered["filters"]["year"] == "2024"

    def test_unknown_author_falls_back(self, client, auth):
        add_book(client, auth, "A", authors=["Le Guin"], finished_month="2023-01")
        stats = client.get("/stats", params={"author": "Nobody"}, headers=auth).json()
        assert stats["filters"]["author"] is None
        assert stats["viewCount"] == 1

    def test_timeline_year(self, client, auth):
        add_book(client, auth, "A", finished_month="2023-04")
        stats = client.get("/stats", params={"timeline_year": "2023"}, headers=auth).json()
        assert len(stats["timeline"]) == 12
        assert stats["timeline"][3] == {"label": "2023-04", "count": 1}
