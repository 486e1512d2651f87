from visco2fly.services.grouping import group_offers, itinerary_key, unique_itineraries


def test_key_ignores_price(make_offer):
    cheap = make_offer("1", price=90)
    dear = make_offer("2", price=300)
    assert itinerary_key(cheap) == itinerary_key(dear)


def test_key_format(make_offer, make_segment):
    offer = make_offer(
        segments=[
            make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T09:00:00"),
            make_segment("BA", "2", "2025-06-01T10:00:00", "2025-06-01T12:00:00"),
        ]
    )
    assert itinerary_key(offer) == "BA1@2025-06-01T08:00:00|BA2@2025-06-01T10:00:00"


def test_round_trip_key_joins_itineraries(make_offer, make_segment):
    offer = make_offer(
        itineraries=[
            {"duration": "PT3H", "segments": [make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T11:00:00")]},
            {"duration": "PT3H", "segments": [make_segment("BA", "2", "2025-06-08T08:00:00", "2025-06-08T11:00:00")]},
        ]
    )
    assert itinerary_key(offer) == "BA1@2025-06-01T08:00:00||BA2@2025-06-08T08:00:00"


def test_different_departure_is_different_itinerary(make_offer, make_segment):
    a = make_offer(segments=[make_segment("BA", "1", "2025-06-01T08:00:00", "2025-06-01T11:00:00")])
    b = make_offer(segments=[make_segment("BA", "1", "2025-06-02T08:00:00", "2025-06-02T11:00:00")])
    assert itinerary_key(a) != itinerary_key(b)


def test_group_offers_preserves_first_seen_order(make_offer, make_segment):
    x1 = make_offer("x1", segments=[make_segment("AA", "100", "2025-06-01T08:00:00", "2025-06-01T11:00:00")])
    y1 = make_offer("y1", segments=[make_segment("DL", "200", "2025-06-01T09:00:00", "2025-06-01T12:00:00")])
    x2 = make_offer("x2", price=250, segments=[make_segment("AA", "100", "2025-06-01T08:00:00", "2025-06-01T11:00:00")])

    groups = group_offers([x1, y1, x2])

    assert [[o["id"] for o in g] for g in groups.values()] == [["x1", "x2"], ["y1"]]


def test_unique_itineraries_keeps_first(make_offer):
    first = make_offer("a", price=120)
    second = make_offer("b", price=80)
    assert unique_itineraries([first, second]) == [first]
