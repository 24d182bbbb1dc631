from flask import current_app
from favposts.extensions import db
from favposts.models import CONTENT_MODELS

# Default building blocks for composed posts
DEFAULT_CONTENT = {
    'introduction': [
        "Chers collègues, je me permets de revenir vers vous au sujet de notre dernier échange.",
        "Bonjour à tous, voici un point rapide sur l'avancement du projet.",
    ],
    'body': [
        "Les premiers résultats sont encourageants et les délais devraient être tenus.",
        "Quelques points restent à clarifier avant la prochaine étape.",
    ],
    'conclusion': [
        "Je reste à votre disposition pour toute question.",
        "Merci à tous pour votre implication.",
    ],
}


def initialize_content(content=None):
    """Seeds each empty content table; tables that already hold rows are left alone.

    Returns the number of rows created per table.
    """
    content = content or DEFAULT_CONTENT
    created = {}

    for name, texts in content.items():
        model = CONTENT_MODELS[name]
        created[name] = 0
        if model.query.first():
            current_app.logger.info(f"'{name}' already seeded, skipping.")
            continue
        for text in texts:
            db.session.add(model(content=text))
            created[name] += 1

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.error('Content seeding failed.', exc_info=True)
        raise

    current_app.logger.info(f"Content seeding done: {created}")
    return created
