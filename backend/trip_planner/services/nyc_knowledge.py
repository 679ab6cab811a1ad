# backend/trip_planner/services/nyc_knowledge.py
"""
Static destination knowledge used when rendering prompts: seasons, calendar
events, neighborhoods/boroughs and the keyword sets behind the history summary.
"""

from typing import Dict, List, Tuple


# ----------------------------------------------------------
# SEASONS (months are 1-based)
# ----------------------------------------------------------
SEASONS: Dict[str, Dict[str, str]] = {
    "Inverno": {
        "name": "Inverno",
        "temp": "Muito frio (0-8°C), com possibilidade de neve e ventos gelados",
        "clothing": "Casaco pesado de inverno, luvas, gorro, cachecol, botas impermeáveis, várias camadas de roupa",
        "tips": "Época perfeita para patinação no gelo, mercados de Natal, shows da Broadway, museus. Central Park nevado é mágico.",
        "avoid": "Atividades ao ar livre prolongadas sem aquecimento. Evite subestimar o frio, o vento pode ser cortante.",
    },
    "Primavera": {
        "name": "Primavera",
        "temp": "Agradável (10-20°C), mas variável, pode ter dias frios ou chuva",
        "clothing": "Casaco leve, jaqueta corta-vento, camadas removíveis, guarda-chuva sempre à mão",
        "tips": "Flores de cerejeira no Brooklyn Botanic Garden (final de março/abril), clima ideal para caminhar, parques ficam lindos.",
        "avoid": "Não confie totalmente na previsão, a primavera em NY é imprevisível. Tenha sempre um plano B indoor.",
    },
    "Verão": {
        "name": "Verão",
        "temp": "Quente e úmido (25-35°C), pode ser abafado",
        "clothing": "Roupas leves e respiráveis, chapéu, óculos de sol, protetor solar, garrafa de água",
        "tips": "Praias de Coney Island, eventos ao ar livre, rooftop bars, Shakespeare in the Park, shows de rua.",
        "avoid": "O metrô pode ser muito quente. Evite atividades ao ar livre nas horas mais quentes (12-15h). Mantenha-se hidratado.",
    },
    "Outono": {
        "name": "Outono",
        "temp": "Agradável a fresco (10-20°C)",
        "clothing": "Casaco médio, suéter, camadas (manhãs e noites frias, dias agradáveis)",
        "tips": "Melhor época! Folhas coloridas no Central Park, Halloween, Thanksgiving, clima perfeito para caminhar.",
        "avoid": "O final de novembro pode ficar muito frio. Não subestime as temperaturas noturnas.",
    },
}

SEASON_BY_MONTH: Dict[int, str] = {
    12: "Inverno", 1: "Inverno", 2: "Inverno",
    3: "Primavera", 4: "Primavera", 5: "Primavera",
    6: "Verão", 7: "Verão", 8: "Verão",
    9: "Outono", 10: "Outono", 11: "Outono",
}


# ----------------------------------------------------------
# HOLIDAYS & EVENTS
# ----------------------------------------------------------
# (month, first_day, last_day, description); checked before MONTH_EVENTS
FIXED_HOLIDAYS: List[Tuple[int, int, int, str]] = [
    (1, 1, 1, "Ano Novo - muitos lugares fechados, Times Square lotada"),
    (2, 14, 14, "Dia dos Namorados - restaurantes lotados, reserve com antecedência"),
    (3, 17, 17, "St. Patrick's Day - grande parada na 5th Avenue, pubs cheios"),
    (7, 4, 4, "Independence Day - fogos de artifício, eventos especiais, muito movimentado"),
    (10, 31, 31, "Halloween - Village Halloween Parade, decorações por toda parte"),
    (11, 22, 28, "Thanksgiving - Macy's Parade, Black Friday, muitas lojas com ofertas"),
    (12, 25, 25, "Natal - decorações magníficas, Rockefeller Center, shows temáticos"),
    (12, 31, 31, "Réveillon - Times Square lotada, precisa chegar cedo"),
]

MONTH_EVENTS: Dict[int, str] = {
    1: "NYC Restaurant Week (geralmente), Winter Jazzfest",
    2: "Fashion Week, Westminster Dog Show",
    3: "Armory Show (arte)",
    4: "Tribeca Film Festival, Easter Parade na 5th Avenue",
    5: "Fleet Week (navios militares), Frieze Art Fair",
    6: "Pride Month - parada no final do mês, eventos LGBT+",
    7: "Macy's Fireworks (dia 4), concertos do SummerStage",
    8: "US Open (tênis) começa, Restaurant Week",
    9: "Fashion Week, NY Film Festival começa",
    11: "NYC Marathon, Macy's Parade",
}


# ----------------------------------------------------------
# LOCALE KNOWLEDGE
# ----------------------------------------------------------
# keys are lowercase; looked up exact first, then by substring
NEIGHBORHOODS: Dict[str, str] = {
    "times square": (
        "Times Square, coração de Midtown Manhattan. Teatros da Broadway, telões, lojas de marca e muita gente "
        "a qualquer hora. Perto de Bryant Park, Rockefeller Center e Hell's Kitchen (restaurantes variados)."
    ),
    "columbus circle": (
        "Columbus Circle, canto sudoeste do Central Park. Time Warner Center (compras e restaurantes), "
        "Lincoln Center a 5 minutos a pé, entrada do Central Park e Upper West Side logo acima."
    ),
    "soho": (
        "SoHo, sul de Manhattan. Ruas de paralelepípedo, prédios de ferro fundido, lojas de grife e galerias. "
        "Vizinho de Little Italy, Chinatown, Nolita e Tribeca, tudo a pé."
    ),
    "tribeca": (
        "Tribeca, sul de Manhattan. Bairro residencial elegante com restaurantes premiados, perto do "
        "Hudson River Park, SoHo e do Memorial do 11 de Setembro."
    ),
    "greenwich village": (
        "Greenwich Village, sul de Manhattan. Washington Square Park, clubes de jazz, cafés e ruas arborizadas. "
        "West Village e NoHo ficam a poucos minutos a pé."
    ),
    "west village": (
        "West Village, sul de Manhattan. Ruas charmosas, restaurantes pequenos, bares históricos. "
        "Perto do Meatpacking District, High Line e Chelsea Market."
    ),
    "chelsea": (
        "Chelsea, lado oeste de Manhattan. High Line, Chelsea Market, galerias de arte e Hudson Yards ao norte."
    ),
    "meatpacking": (
        "Meatpacking District, oeste de Manhattan. Início da High Line, Whitney Museum, vida noturna e lojas de design."
    ),
    "hudson yards": (
        "Hudson Yards, oeste de Midtown. The Vessel, mirante Edge, shopping e a ponta norte da High Line."
    ),
    "lower east side": (
        "Lower East Side, sul de Manhattan. Tenement Museum, Katz's Delicatessen, bares e galerias independentes."
    ),
    "east village": (
        "East Village, sul de Manhattan. Tompkins Square Park, restaurantes baratos e variados, bares e cena alternativa."
    ),
    "chinatown": (
        "Chinatown, sul de Manhattan. Comida chinesa autêntica e barata, mercados de rua, vizinha de Little Italy e SoHo."
    ),
    "little italy": (
        "Little Italy, sul de Manhattan. Mulberry Street com restaurantes italianos, vizinha de Chinatown e Nolita."
    ),
    "financial district": (
        "Financial District, ponta sul de Manhattan. Wall Street, Touro de Wall Street, Memorial do 11 de Setembro, "
        "One World Observatory e balsas para a Estátua da Liberdade a partir do Battery Park."
    ),
    "wall street": (
        "Wall Street, Financial District. Bolsa de Nova York, Federal Hall, Touro de Wall Street; "
        "Battery Park e o Memorial do 11 de Setembro a 10 minutos a pé."
    ),
    "battery park": (
        "Battery Park, ponta sul de Manhattan. Saída das balsas para a Estátua da Liberdade e Ellis Island, "
        "vista do porto, perto de Wall Street."
    ),
    "midtown": (
        "Midtown Manhattan. Empire State Building, Rockefeller Center, Grand Central, 5th Avenue, Bryant Park. "
        "Metrô para todo lado."
    ),
    "rockefeller center": (
        "Rockefeller Center, Midtown. Top of the Rock, pista de patinação no inverno, Radio City Music Hall, "
        "St. Patrick's Cathedral e 5th Avenue ao lado."
    ),
    "empire state": (
        "Empire State Building, Midtown. Koreatown logo ao lado, Herald Square (Macy's) e Bryant Park a poucos minutos."
    ),
    "grand central": (
        "Grand Central Terminal, Midtown East. Chrysler Building, New York Public Library e Bryant Park a pé."
    ),
    "upper east side": (
        "Upper East Side, Manhattan. Museum Mile (Met, Guggenheim, Neue Galerie), lado leste do Central Park, "
        "bairro residencial e tranquilo."
    ),
    "upper west side": (
        "Upper West Side, Manhattan. Museu de História Natural, lado oeste do Central Park, Lincoln Center, "
        "Riverside Park, bom para famílias."
    ),
    "central park": (
        "Central Park, Manhattan. Bethesda Terrace, Bow Bridge, Strawberry Fields, zoológico. "
        "Cercado pelo Upper East e Upper West Side e por Midtown ao sul."
    ),
    "harlem": (
        "Harlem, norte de Manhattan. Apollo Theater, soul food, igrejas com gospel aos domingos, arquitetura histórica."
    ),
    "dumbo": (
        "DUMBO, Brooklyn. Vista clássica da Manhattan Bridge, Brooklyn Bridge Park, carrossel de Jane, "
        "cafés e lojas. Brooklyn Heights fica a 10 minutos a pé."
    ),
    "brooklyn heights": (
        "Brooklyn Heights, Brooklyn. Promenade com vista para Manhattan, casas históricas, perto de DUMBO "
        "e da Brooklyn Bridge."
    ),
    "williamsburg": (
        "Williamsburg, Brooklyn. Cena hipster, cervejarias, brechós, Smorgasburg aos fins de semana, "
        "Domino Park à beira do rio. Um ponto de metrô (linha L) de Manhattan."
    ),
    "greenpoint": (
        "Greenpoint, Brooklyn. Bairro de origem polonesa, cafés, vista do skyline, vizinho de Williamsburg."
    ),
    "park slope": (
        "Park Slope, Brooklyn. Prospect Park, Brooklyn Museum e Jardim Botânico por perto, bairro familiar."
    ),
    "prospect park": (
        "Prospect Park, Brooklyn. Parque amplo com lago, Brooklyn Botanic Garden e Brooklyn Museum ao lado."
    ),
    "coney island": (
        "Coney Island, sul do Brooklyn. Praia, calçadão, parque de diversões Luna Park, Nathan's Famous. "
        "Cerca de 1h de metrô de Midtown."
    ),
    "astoria": (
        "Astoria, Queens. Comunidade grega, restaurantes mediterrâneos, Museum of the Moving Image, "
        "Astoria Park com vista para as pontes."
    ),
    "long island city": (
        "Long Island City, Queens. MoMA PS1, Gantry Plaza State Park com vista para Midtown, "
        "uma estação de metrô de Manhattan."
    ),
    "flushing": (
        "Flushing, Queens. Uma das maiores Chinatowns do mundo, food courts asiáticos, perto do "
        "Flushing Meadows (US Open, Unisphere). Longe de Manhattan, cerca de 45 minutos de metrô."
    ),
    "arthur avenue": (
        "Arthur Avenue, Bronx. A Little Italy autêntica, delicatessens e padarias italianas, perto do Bronx Zoo "
        "e do New York Botanical Garden."
    ),
    "yankee stadium": (
        "Yankee Stadium, Bronx. Estádio dos Yankees, em dias de jogo o metrô fica lotado. "
        "Cerca de 25 minutos de metrô de Midtown."
    ),
}

BOROUGHS: Dict[str, str] = {
    "manhattan": (
        "Centro de NYC, inclui Midtown, Upper East/West Side, Lower Manhattan, Greenwich Village, SoHo, Tribeca, "
        "Harlem. Metrô muito acessível. Tudo fica relativamente perto."
    ),
    "brooklyn": (
        "Do outro lado do East River. Inclui Williamsburg (hipster), DUMBO (vista para Manhattan), Park Slope "
        "(família), Coney Island (praia). Metrô conecta bem, mas distâncias maiores."
    ),
    "queens": (
        "Borough mais diverso. Flushing (comida asiática incrível), Astoria (grega), Long Island City (arte). "
        "Mais afastado, considere tempo extra no metrô."
    ),
    "bronx": (
        "Yankee Stadium, Bronx Zoo, New York Botanical Garden, Arthur Avenue (Little Italy autêntica). "
        "Geralmente requer mais tempo de deslocamento."
    ),
    "staten island": (
        "Mais residencial, menos turístico. A Staten Island Ferry é grátis e oferece ótima vista da Estátua da "
        "Liberdade. Considere apenas se tiver tempo extra."
    ),
}

GENERIC_LOCALE = (
    "Ponto de interesse específico em Nova York. Trate \"{region}\" como o ponto de partida: priorize "
    "sugestões num raio de 10-15 minutos a pé e informe o tempo de deslocamento quando for preciso ir mais longe."
)


# ----------------------------------------------------------
# HISTORY CATEGORIES
# ----------------------------------------------------------
# insertion order breaks frequency ties
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "museus": ("museu", "museum", "art", "arte"),
    "parques": ("parque", "park", "jardim", "garden"),
    "gastronomia": ("restaurante", "food", "comida", "café"),
    "entretenimento": ("show", "teatro", "broadway", "música"),
    "compras": ("compra", "shopping", "loja", "store"),
}


# ----------------------------------------------------------
# LABELS
# ----------------------------------------------------------
WEEKDAYS_PT = [
    "segunda-feira", "terça-feira", "quarta-feira", "quinta-feira",
    "sexta-feira", "sábado", "domingo",
]

MONTHS_PT = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

PACE_LABELS = {
    "relaxed": "Relaxado (menos atividades, mais tempo livre)",
    "moderate": "Moderado (equilíbrio)",
    "intense": "Intenso (muitas atividades)",
}

BUDGET_LABELS = {
    "budget": "Econômico",
    "moderate": "Moderado",
    "luxury": "Luxo",
}
