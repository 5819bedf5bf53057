from traffic_broadcaster.start_server import main

main()
