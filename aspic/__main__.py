from aspic.server import main

main()
