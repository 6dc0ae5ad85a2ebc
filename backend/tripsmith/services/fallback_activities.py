"""Fallback activity generator — curated per-destination options used when candidates run out."""

import logging
from dataclasses import dataclass

from tripsmith.schemas.candidate import Coordinates
from tripsmith.schemas.itinerary import Activity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackOption:
    name: str
    category: str
    cost: float
    description: str


def _opt(name: str, category: str, cost: float, description: str) -> FallbackOption:
    return FallbackOption(name, category, cost, description)


DESTINATION_COORDS = {
    "paris": (48.8566, 2.3522),
    "tokyo": (35.6762, 139.6503),
    "barcelona": (41.3851, 2.1734),
    "new york": (40.7128, -74.0060),
    "london": (51.5074, -0.1278),
    "dubai": (25.2048, 55.2708),
    "bali": (-8.3405, 115.0920),
    "rome": (41.9028, 12.4964),
    "amsterdam": (52.3676, 4.9041),
    "bangkok": (13.7563, 100.5018),
    "sydney": (-33.8688, 151.2093),
    "cancun": (21.1619, -86.8515),
}

DESTINATION_TABLES: dict[str, dict[str, list[FallbackOption]]] = {
    "paris": {
        "morning": [
            _opt("Louvre Museum", "culture", 22, "The world's most visited museum, home to the Mona Lisa and Winged Victory."),
            _opt("Musée d'Orsay", "culture", 16, "Impressionist masterpieces inside a Beaux-Arts railway station."),
            _opt("Sainte-Chapelle", "culture", 13, "Gothic chapel with fifteen soaring stained-glass windows; go early for the light."),
            _opt("Père Lachaise Cemetery", "culture", 0, "Tree-lined lanes and the graves of Chopin, Piaf and Wilde."),
        ],
        "afternoon": [
            _opt("Eiffel Tower", "attraction", 29, "Take the lift to the summit for views across the whole city."),
            _opt("Latin Quarter Walk", "attraction", 0, "Wander the Sorbonne's old streets, bookshops and Rue Mouffetard market."),
            _opt("Luxembourg Gardens", "nature", 0, "Formal gardens, the Medici Fountain and toy sailboats on the basin."),
        ],
        "evening": [
            _opt("Le Comptoir du Relais", "dining", 55, "Classic Saint-Germain bistro from chef Yves Camdeborde."),
            _opt("Seine River Cruise", "attraction", 18, "Evening boat ride past the illuminated monuments."),
            _opt("Montmartre and Sacré-Cœur at dusk", "culture", 0, "Climb the butte for sunset over the rooftops, then dinner in the village lanes."),
        ],
    },
    "barcelona": {
        "morning": [
            _opt("Sagrada Familia", "culture", 33, "Gaudí's unfinished basilica; morning light fills the stained glass."),
            _opt("Picasso Museum", "culture", 15, "Early works across five medieval palaces in El Born."),
        ],
        "afternoon": [
            _opt("Park Güell", "nature", 13, "Mosaic terraces and city views in Gaudí's hillside park."),
            _opt("La Boqueria Market", "shopping", 0, "Stalls of jamón, fruit and seafood just off La Rambla."),
        ],
        "evening": [
            _opt("Cal Pep", "dining", 50, "Counter-seat tapas institution near the Born."),
            _opt("Gothic Quarter Night Walk", "culture", 0, "Narrow medieval streets and hidden plazas after dark."),
        ],
    },
    "rome": {
        "morning": [
            _opt("Colosseum and Roman Forum", "culture", 18, "The amphitheatre and the ancient civic heart of Rome."),
            _opt("Vatican Museums", "culture", 20, "Raphael Rooms and the Sistine Chapel; book the first entry slot."),
        ],
        "afternoon": [
            _opt("Pantheon and Piazza Navona", "attraction", 5, "Walk between the domed temple and Bernini's fountains."),
            _opt("Villa Borghese Gardens", "nature", 0, "Shaded paths, a lake and city views from the Pincio."),
        ],
        "evening": [
            _opt("Trastevere Trattoria Dinner", "dining", 40, "Cacio e pepe and carbonara in the cobbled lanes across the Tiber."),
            _opt("Trevi Fountain by Night", "attraction", 0, "Fewer crowds and floodlit marble after dark."),
        ],
    },
    "london": {
        "morning": [
            _opt("British Museum", "culture", 0, "The Rosetta Stone and Parthenon sculptures, free entry."),
            _opt("Tower of London", "culture", 35, "Crown Jewels and nearly a thousand years of history."),
        ],
        "afternoon": [
            _opt("Borough Market", "shopping", 0, "London's oldest food market beside Southwark Cathedral."),
            _opt("Hyde Park and Kensington Gardens", "nature", 0, "Boating on the Serpentine and the Italian Gardens."),
        ],
        "evening": [
            _opt("West End Show", "culture", 75, "A musical or play in Theatreland."),
            _opt("Dishoom Covent Garden", "dining", 35, "Bombay café classics; the black daal is the order."),
        ],
    },
    "tokyo": {
        "morning": [
            _opt("Senso-ji Temple", "culture", 0, "Tokyo's oldest temple, quietest before 8am."),
            _opt("Tokyo National Museum", "culture", 8, "Japan's largest collection of samurai armour, ceramics and scrolls."),
            _opt("Nezu Shrine", "culture", 0, "Vermilion torii tunnels away from the tourist crowds."),
        ],
        "afternoon": [
            _opt("Kanda Matsuya", "dining", 15, "Hand-cut soba served since 1884."),
            _opt("Tokyo Metropolitan Museum of Art", "culture", 10, "Rotating exhibitions inside Ueno Park."),
        ],
        "evening": [
            _opt("Kozasa", "dining", 12, "Tiny Kichijoji wagashi shop famous for its monaka."),
            _opt("Omoide Yokocho", "nightlife", 30, "Smoky yakitori alleys beside Shinjuku Station."),
        ],
    },
    "new york": {
        "morning": [
            _opt("Metropolitan Museum of Art", "culture", 30, "Five thousand years of art on Fifth Avenue."),
            _opt("Museum of Modern Art (MoMA)", "culture", 30, "Van Gogh's Starry Night and modern design icons."),
            _opt("Tenement Museum", "culture", 30, "Immigrant stories told inside restored Lower East Side apartments."),
        ],
        "afternoon": [
            _opt("Katz's Delicatessen", "dining", 30, "Hand-carved pastrami on rye since 1888."),
            _opt("Central Park", "nature", 0, "Bethesda Terrace, Bow Bridge and the Ramble."),
        ],
        "evening": [
            _opt("Peter Luger Steakhouse", "dining", 100, "Brooklyn porterhouse institution; cash and debit cards only."),
            _opt("Joe's Pizza", "dining", 6, "The classic Greenwich Village slice."),
        ],
    },
    "bali": {
        "morning": [
            _opt("Tegallalang Rice Terraces", "nature", 5, "Cascading paddies north of Ubud, best before the heat."),
            _opt("Besakih Temple", "culture", 6, "The mother temple on the slopes of Mount Agung."),
            _opt("Sacred Monkey Forest Sanctuary", "nature", 7, "Temple ruins and long-tailed macaques in Ubud."),
        ],
        "afternoon": [
            _opt("Warung Babi Guling Ibu Oka", "dining", 5, "Ubud's famous Balinese suckling pig."),
            _opt("Naughty Nuri's", "dining", 15, "Smoky pork ribs and strong martinis."),
        ],
        "evening": [
            _opt("Tanah Lot Temple", "culture", 5, "Sea temple on a rock outcrop, spectacular at sunset."),
            _opt("Uluwatu Temple", "culture", 4, "Clifftop temple with the evening Kecak fire dance."),
            _opt("Locavore Restaurant", "dining", 90, "Tasting menus built entirely from Indonesian produce."),
        ],
    },
    "cancun": {
        "morning": [
            _opt("Chichen Itza", "culture", 35, "The great Maya pyramid of El Castillo; arrive at opening."),
            _opt("Xel-Há Park", "nature", 90, "Snorkelling in a natural inlet where river meets sea."),
        ],
        "afternoon": [
            _opt("Playa Delfines", "nature", 0, "Public beach with turquoise water and the Cancún sign."),
            _opt("Mercado 28", "shopping", 0, "Local crafts and market stalls downtown."),
        ],
        "evening": [
            _opt("Parque de las Palapas", "dining", 10, "Evening street food, marquesitas and local music."),
            _opt("La Habichuela", "dining", 45, "Caribbean-Maya cooking in a garden setting."),
        ],
    },
    "amsterdam": {
        "morning": [
            _opt("Rijksmuseum", "culture", 25, "Rembrandt's Night Watch and the Dutch Golden Age."),
            _opt("Anne Frank House", "culture", 16, "The secret annex; tickets release online weeks ahead."),
        ],
        "afternoon": [
            _opt("Vondelpark", "nature", 0, "The city's park for cycling and picnics."),
            _opt("Jordaan Canal Walk", "attraction", 0, "Gabled houses, hofjes and brown cafés."),
        ],
        "evening": [
            _opt("Canal Cruise at Dusk", "attraction", 20, "The Golden Age canal ring lit up at night."),
            _opt("Foodhallen", "dining", 25, "Indoor food market in an old tram depot."),
        ],
    },
    "bangkok": {
        "morning": [
            _opt("Grand Palace and Wat Phra Kaew", "culture", 15, "The Emerald Buddha and royal halls; cover shoulders and knees."),
            _opt("Wat Pho", "culture", 6, "The giant reclining Buddha and Thai massage school."),
        ],
        "afternoon": [
            _opt("Chatuchak Weekend Market", "shopping", 0, "Fifteen thousand stalls of everything."),
            _opt("Lumphini Park", "nature", 0, "Green lungs of the city, with resident monitor lizards."),
        ],
        "evening": [
            _opt("Yaowarat Street Food", "dining", 12, "Chinatown's night-time food street."),
            _opt("Rooftop Bar on Silom", "nightlife", 25, "Skyline cocktails above the city lights."),
        ],
    },
    "dubai": {
        "morning": [
            _opt("Al Fahidi Historical District", "culture", 0, "Wind-tower houses and small museums by the creek."),
            _opt("Dubai Museum of the Future", "culture", 40, "Futuristic exhibits inside the torus-shaped landmark."),
        ],
        "afternoon": [
            _opt("Gold and Spice Souks", "shopping", 0, "Cross the creek by abra into the old souks."),
            _opt("Burj Khalifa At the Top", "attraction", 45, "Observation deck on the 124th floor."),
        ],
        "evening": [
            _opt("Desert Safari", "nature", 65, "Dune drive, sunset and dinner at a desert camp."),
            _opt("Al Ustad Special Kebab", "dining", 15, "Family-run Persian kebab house since 1978."),
        ],
    },
    "sydney": {
        "morning": [
            _opt("Bondi to Coogee Coastal Walk", "nature", 0, "Clifftop path past ocean pools and beaches."),
            _opt("Art Gallery of New South Wales", "culture", 0, "Australian and Aboriginal art in the Domain."),
        ],
        "afternoon": [
            _opt("Royal Botanic Garden", "nature", 0, "Harbour views from Mrs Macquarie's Chair."),
            _opt("The Rocks Markets", "shopping", 0, "Weekend stalls in the city's oldest quarter."),
        ],
        "evening": [
            _opt("Sydney Opera House Performance", "culture", 60, "Opera, ballet or a concert under the sails."),
            _opt("Mr. Wong", "dining", 50, "Cantonese dining in a Bridge Street laneway."),
        ],
    },
}

GENERIC_TABLE: dict[str, list[FallbackOption]] = {
    "morning": [
        _opt("Explore Local Attractions", "attraction", 45, "Start the day at the highlights of {destination}."),
        _opt("Local History Museum", "culture", 25, "Get the story of {destination} from its main history museum."),
        _opt("Cultural District Walking Tour", "culture", 25, "A guided walk through the historic quarter of {destination}."),
        _opt("Botanical Garden", "nature", 30, "A quiet morning among the gardens of {destination}."),
    ],
    "afternoon": [
        _opt("Local Cuisine Experience", "dining", 35, "Authentic local dishes at a well-reviewed restaurant in {destination}."),
        _opt("Traditional Market", "shopping", 50, "Browse the stalls of the main market in {destination}."),
        _opt("Scenic Viewpoint", "nature", 30, "Take in the best view over {destination}."),
        _opt("Artisan Quarter", "shopping", 50, "Workshops and galleries from local makers in {destination}."),
    ],
    "evening": [
        _opt("Cultural Experience", "culture", 25, "Evening performance or cultural activity in {destination}."),
        _opt("Traditional Market Food Tour", "dining", 35, "Graze the evening food stalls of {destination}."),
        _opt("Local Wine Bar", "nightlife", 40, "Regional wines and small plates in {destination}."),
        _opt("Traditional Music Venue", "nightlife", 40, "Live local music to close the day in {destination}."),
    ],
}


def _lookup(destination: str, table: dict) -> str | None:
    lowered = destination.lower()
    for key in table:
        if key in lowered:
            return key
    return None


def destination_coordinates(destination: str) -> Coordinates | None:
    key = _lookup(destination, DESTINATION_COORDS)
    if key is None:
        return None
    lat, lng = DESTINATION_COORDS[key]
    return Coordinates(lat=lat, lng=lng)


class FallbackActivityGenerator:
    """Returns a slot-appropriate activity never present in ``used_names``.

    Destination table first, then the generic table. When both are spent the
    generic options are re-issued with a day suffix, so a name is never
    repeated however long the trip.
    """

    def options_for(self, destination: str, slot: str) -> list[FallbackOption]:
        key = _lookup(destination, DESTINATION_TABLES)
        specific = DESTINATION_TABLES[key].get(slot, []) if key else []
        return [*specific, *GENERIC_TABLE[slot]]

    def next_activity(
        self,
        destination: str,
        slot: str,
        time: str,
        used_names: set[str],
        day_number: int,
    ) -> Activity:
        options = self.options_for(destination, slot)
        for option in options:
            if option.name not in used_names:
                return self._to_activity(option, option.name, destination, time)

        generic = GENERIC_TABLE[slot]
        suffix = f"(day {day_number})"
        attempt = 0
        while True:
            option = generic[attempt % len(generic)]
            round_no = attempt // len(generic)
            name = f"{option.name} {suffix}" if round_no == 0 else f"{option.name} {suffix} #{round_no + 1}"
            if name not in used_names:
                logger.debug(f"Fallback tables exhausted for {destination} {slot}, using {name!r}")
                return self._to_activity(option, name, destination, time)
            attempt += 1

    @staticmethod
    def _to_activity(option: FallbackOption, name: str, destination: str, time: str) -> Activity:
        return Activity(
            time=time,
            name=name,
            description=option.description.format(destination=destination),
            estimated_cost=option.cost,
            category=option.category,
            location=destination,
            coordinates=destination_coordinates(destination),
            provenance=["fallback"],
            why_recommended=f"Popular {option.category} choice in {destination}",
            is_fallback=True,
        )


fallback_generator = FallbackActivityGenerator()
