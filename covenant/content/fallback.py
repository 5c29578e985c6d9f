"""
Curated content served when no export or database is available
"""

from .models import SiteContent
from .normalize import DEFAULT_NAVIGATION

FALLBACK_CONTENT = {
    "hero": {
        "title": "Una nueva era para The Covenant",
        "description": (
            "Reimaginamos el archivo oscuro del colectivo con un diseño minimalista, "
            "inspirado en la estética original y enfocado en la lectura."
        ),
        "cta": {"label": "Entrar al archivo", "href": "/cronicas"},
    },
    "highlight": "cronicas/el-umbral",
    "featured": [
        "cronicas/el-umbral",
        "experiencias/la-llamada",
        "noticias/aniversario",
        "podcast/episodio-ritual",
    ],
    "navigation": DEFAULT_NAVIGATION,
    "articles": [
        {
            "slug": "cronicas/el-umbral",
            "title": "Crónica: El Umbral",
            "description": "Los susurros que se filtran desde la habitación sellada del convento abandonado.",
            "excerpt": (
                "La noche en que abrimos El Umbral aprendimos que algunos acertijos no quieren ser "
                "resueltos. Esta es la bitácora de aquella incursión."
            ),
            "coverImage": {
                "url": "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?auto=format&fit=crop&w=1200&q=80",
                "alt": "Pasillo oscuro iluminado por luces violetas",
            },
            "category": "Crónicas",
            "tags": ["investigación", "horror"],
            "publishedAt": "2023-10-12",
            "readingTime": "8 min",
            "sections": [
                {
                    "type": "paragraph",
                    "text": (
                        "Entramos pasada la medianoche. Las cámaras infrarrojas revelaban siluetas que no "
                        "debían estar allí y las claves encontradas en el archivo antiguo se reordenaban "
                        "solas sobre la mesa."
                    ),
                },
                {"type": "quote", "text": "El Umbral no es una puerta, es un trato."},
                {
                    "type": "paragraph",
                    "text": (
                        "Documentamos cada paso con grabadoras analógicas y un mapa trazado a mano. Los "
                        "símbolos coincidían con los de la web original, confirmando la conexión con los "
                        "relatos de The Covenant."
                    ),
                },
            ],
        },
        {
            "slug": "experiencias/la-llamada",
            "title": "Experiencia: La llamada",
            "description": "Un recorrido telefónico por voces que no pertenecen a nuestro tiempo.",
            "excerpt": (
                "Durante 45 minutos respondemos a una serie de llamadas que reconstruyen la desaparición "
                "de un iniciad@. Cada llamada abre una capa más profunda de la historia."
            ),
            "coverImage": {
                "url": "https://images.unsplash.com/photo-1526378722484-bd91ca387e72?auto=format&fit=crop&w=1200&q=80",
                "alt": "Cabina telefónica iluminada en morado",
            },
            "category": "Experiencias",
            "tags": ["juego", "audio"],
            "publishedAt": "2024-02-05",
            "readingTime": "6 min",
            "sections": [
                {
                    "type": "paragraph",
                    "text": (
                        "Los participantes reciben instrucciones codificadas en la web original. Cada llamada "
                        "desbloquea fragmentos de audio y pistas que deben interpretar en tiempo real."
                    ),
                },
                {
                    "type": "paragraph",
                    "text": (
                        "El rediseño del front permite destacar la cronología, mostrar mapas interactivos y "
                        "facilitar la suscripción a futuras sesiones."
                    ),
                },
            ],
        },
        {
            "slug": "noticias/aniversario",
            "title": "Noticias: Séptimo aniversario",
            "description": "Celebramos siete años de investigaciones colectivas.",
            "excerpt": (
                "Lanzamos nuevo archivo digital, calendario de eventos híbridos y un repositorio para "
                "colaboradores internacionales."
            ),
            "coverImage": {
                "url": "https://images.unsplash.com/photo-1534447677768-be436bb09401?auto=format&fit=crop&w=1200&q=80",
                "alt": "Grupo celebrando en un espacio oscuro",
            },
            "category": "Noticias",
            "tags": ["evento", "comunidad"],
            "publishedAt": "2024-06-01",
            "readingTime": "4 min",
            "sections": [
                {
                    "type": "paragraph",
                    "text": (
                        "El aniversario se celebrará con una transmisión en directo desde el sancta sanctorum "
                        "del colectivo. Se presentará el nuevo front, inspirado en el diseño original."
                    ),
                },
                {
                    "type": "paragraph",
                    "text": (
                        "La comunidad podrá descargar recursos, acceder a la agenda y colaborar en futuros "
                        "proyectos cross-media."
                    ),
                },
            ],
        },
        {
            "slug": "podcast/episodio-ritual",
            "title": "Podcast: Ritual de apertura",
            "description": "Primer episodio del podcast con testimonios del equipo de campo.",
            "excerpt": (
                "Rescatamos grabaciones inéditas de la investigación sobre el monasterio en ruinas. "
                "Disponible en todas las plataformas."
            ),
            "coverImage": {
                "url": "https://images.unsplash.com/photo-1453873531674-2151bcd01707?auto=format&fit=crop&w=1200&q=80",
                "alt": "Grabadora antigua con luces moradas",
            },
            "category": "Podcast",
            "tags": ["audio", "entrevista"],
            "publishedAt": "2024-04-18",
            "readingTime": "5 min",
            "sections": [
                {
                    "type": "paragraph",
                    "text": (
                        "El episodio combina paisajes sonoros originales con entrevistas a los guardianes de "
                        "archivos. El rediseño destaca los reproductores embebidos y las notas del episodio."
                    ),
                }
            ],
        },
    ],
}


def fallback_content() -> SiteContent:
    """A fresh copy of the curated fallback set"""
    return SiteContent.model_validate(FALLBACK_CONTENT)
