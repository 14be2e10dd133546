"""Names used to seed an empty roster collection."""

DEFAULT_ROSTER: tuple[str, ...] = (
    "Ben Francis",
    "Jake Beasley",
    "Shen Guo",
    "Donald Henry",
    "Darius Brown",
    "Onyekautukwu Nwankwoh",
    "Ricky Ellis",
    "Rodney Wallace",
    "Nikolajs Vairogs",
    "Michel Barrett",
    "Johan Boström",
    "Vlado Tomas",
    "Elia Kirchner",
    "David Best",
    "Ray Holmes",
    "Kevin Marck",
    "Ian Freeman",
    "Damien Geathers",
    "Dwayne Lieberman",
    "Youssef Auriemma",
    "Tyler Swanigan",
    "Thomas Broadnax",
    "Drew Williams",
    "Raharjo Indradjaja",
    "Nam Tae-Hyun",
    "Oren Gilbert",
    "Antoine McKay",
    "Nikola Sinovec",
    "Ugur Koseoglu",
    "Andrew Harrington",
    "Peter Zhong",
    "Joey Shui",
    "Jonathan Albarez",
    "Pavel Rodionov",
    "Javar Knight",
    "Michael Witt",
    "Ron Baxter Jr.",
    "Ross Thomas",
    "Clay Davis",
    "Angelo Pace",
    "Cole Nelson",
    "Peter Travers",
    "Connor Kamana",
    "Zoran Alihodzic",
    "Mark Blind",
    "Charles Gibson",
    "Michael Hopper",
    "Adam Adamczyk",
    "Gil Cardoso",
    "Julian McNeil",
    "Toni Ercegovic",
    "David Blot",
    "Adham Tahan",
    "Rolandas Pocius",
    "Kieran Krslovic",
    "Kyle White",
    "Linos Labropoulos",
    "Min Sang-Hun",
    "Devin Eldredge",
    "Nando Wolff",
    "Yan Kang",
    "Javan Mathis",
    "Richard Gagnon",
    "Cícero de Figueiredo",
    "Lutz Berger",
    "Muratcan Suvari",
    "Martin Hoffmann",
    "Murray Forzani",
    "Duan Hu",
    "Simeão Derénusson",
    "Dante Ledesma",
    "Jonathan Schröder",
    "Brandon Benenoch",
    "Derrick Downs",
    "Jung Young-Nam",
    "Randy Woods",
    "Charlie Murphy",
    "Song Yin",
    "Alessandro Tote",
    "McCall Longoria",
    "Cody Jones",
    "Quintopolis Aboundomendo",
    "Austin Washington",
    "Baki Kilicli",
    "Stephon Parris",
    "Kerem Sahan",
    "Seth Battle",
    "Anthony Kamp",
    "David Krejčí",
    "Moataz Hajjar",
    "Miroslav Babic",
    "Lawrence Coley",
    "Chuck Zanna",
    "Juan Andrés Pavon",
    "Zou Xiuying",
    "Bunichi Mizusawa",
    "Peter Harrison",
    "Kevin Ross",
    "Walter Atkinson",
    "Timeu Assunção",
)
