from fantasta.db.init_db import init_db
from fantasta.main import configure_logging
from fantasta.services.scheduler import AuctionSweeper


def main():
    configure_logging()
    init_db()
    report = AuctionSweeper().run_once()
    print(
        f"expired={report.expired_found} closed={len(report.closed)} "
        f"already_closed={len(report.already_closed)} failed={len(report.failed)}"
    )
    for summary in report.closed:
        print(summary.as_dict())


if __name__ == "__main__":
    main()
