from visco2fly.services.booking_links import kayak_url, offer_booking_links, skyscanner_url


def test_skyscanner_one_way():
    assert (
        skyscanner_url("LHR", "JFK", "2025-06-01", cabin_class="PREMIUM_ECONOMY")
        == "https://www.skyscanner.com/transport/flights/LHR/JFK/20250601/?adults=1&cabinclass=premium_economy"
    )


def test_kayak_economy_has_no_cabin_param():
    assert kayak_url("LHR", "JFK", "2025-06-01") == "https://www.kayak.com/flights/LHR-JFK/2025-06-01?sort=bestflight_a&passengers=1"


def test_kayak_round_trip_business():
    assert (
        kayak_url("LHR", "JFK", "2025-06-01", "2025-06-08", "BUSINESS")
        == "https://www.kayak.com/flights/LHR-JFK/2025-06-01/2025-06-08?sort=bestflight_a&passengers=1&cabin=business"
    )


def test_links_from_round_trip_offer(make_offer, make_segment):
    offer = make_offer(
        itineraries=[
            {"duration": "PT3H", "segments": [
                make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T09:00:00", "LHR", "DUB"),
                make_segment("EI", "105", "2025-06-01T11:00:00", "2025-06-01T13:00:00", "DUB", "JFK"),
            ]},
            {"duration": "PT3H", "segments": [make_segment("BA", "2", "2025-06-08T18:00:00", "2025-06-09T06:00:00", "JFK", "LHR")]},
        ]
    )
    links = offer_booking_links(offer, "FIRST")
    assert links["skyscanner"] == "https://www.skyscanner.com/transport/flights/LHR/JFK/20250601/20250608/?adults=1&cabinclass=first"
    assert links["kayak"].endswith("/LHR-JFK/2025-06-01/2025-06-08?sort=bestflight_a&passengers=1&cabin=first")


def test_links_need_segments():
    assert offer_booking_links({"itineraries": []}) is None


def test_links_need_airport_codes(make_offer):
    offer = make_offer()
    del offer["itineraries"][0]["segments"][0]["departure"]["iataCode"]
    assert offer_booking_links(offer) is None


def test_links_skip_unreadable_return_date(make_offer, make_segment):
    offer = make_offer(
        itineraries=[
            {"duration": "PT7H", "segments": [make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T11:00:00")]},
            {"duration": "PT7H", "segments": [make_segment("BA", "2", None, "2025-06-08T11:00:00", "JFK", "LHR")]},
        ]
    )
    assert offer_booking_links(offer)["kayak"] == "https://www.kayak.com/flights/LHR-JFK/2025-06-01?sort=bestflight_a&passengers=1"
