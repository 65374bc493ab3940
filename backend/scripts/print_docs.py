import os, sys
BASE = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE not in sys.path:
    sys.path.insert(0, BASE)
from docquiz.db.models import Document, Quiz
from docquiz.db.session import SessionLocal
import pprint

def main():
    db = SessionLocal()
    docs = []
    for d in db.query(Document).order_by(Document.upload_date.desc()).all():
        quiz = db.query(Quiz).filter(Quiz.document_id == d.id, Quiz.user_id == d.user_id).one_or_none()
        docs.append({
            "id": d.id,
            "user_id": d.user_id,
            "title": d.title,
            "processed": d.processed,
            "has_summary": d.summary is not None,
            "questions": len(quiz.questions) if quiz else 0,
        })
    pprint.pprint(docs)
    db.close()

if __name__ == "__main__":
    main()
