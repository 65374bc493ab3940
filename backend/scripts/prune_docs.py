import os, sys
BASE = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE not in sys.path:
    sys.path.insert(0, BASE)
from docquiz.db.models import Document, Quiz
from docquiz.db.session import SessionLocal

def main():
    if len(sys.argv) < 2:
        print("Usage: prune_docs.py <doc_id1> [<doc_id2> ...]")
        sys.exit(1)

    # first argument onward are the document IDs to delete
    to_delete_docs = sys.argv[1:]
    print("Will delete documents:", to_delete_docs)

    db = SessionLocal()

    # quizzes first, then the documents themselves
    db.query(Quiz)\
      .filter(Quiz.document_id.in_(to_delete_docs))\
      .delete(synchronize_session=False)

    deleted = db.query(Document)\
      .filter(Document.id.in_(to_delete_docs))\
      .delete(synchronize_session=False)

    db.commit()
    db.close()
    print(f"Deletion complete ({deleted} document(s)).")

if __name__ == "__main__":
    main()
