from nixup.cli import main

main()
